from typing import Optional


class NexenError(Exception):
    """Exception type used to propagate Nexen language errors."""
    name = 'Error'

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(f"{self.name}: {message}")
        self.message = message
        self.line = line


class ParseError(NexenError):
    name = 'ParseError'


class UndefinedReference(NexenError):
    name = 'UndefinedReference'


class TypeMismatch(NexenError):
    name = 'TypeMismatch'


class ComparisonError(TypeMismatch):
    name = 'ComparisonError'


class UnsupportedOperator(NexenError):
    name = 'UnsupportedOperator'


class ArityError(NexenError):
    name = 'ArityError'


class NotCallable(NexenError):
    name = 'NotCallable'


class InvalidStep(NexenError):
    name = 'InvalidStep'


class CannotEvaluate(NexenError):
    name = 'CannotEvaluate'


class InternalError(NexenError):
    """Raised for states the parser is expected to rule out."""
    name = 'InternalError'


class StackOverflow(NexenError):
    name = 'StackOverflow'


class ProgramError(Exception):
    """A language error paired with the source line it was raised on."""
    def __init__(self, message: str, line_number: int, line_text: str, error: Optional[NexenError] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.line_text = line_text
        self.error = error

    def __str__(self) -> str:
        return f'[Error]: {self.message}\n| On line [{self.line_number}]: "{self.line_text}"'
