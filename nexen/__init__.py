# Nexen language package
# This package provides a lexer, parser and tree-walking interpreter for the Nexen language.
from .interpreter import interpret, tokenize, run_program, Interpreter
from .errors import NexenError, ProgramError
from .std import populate_native_registry

__all__ = [
    'interpret',
    'tokenize',
    'run_program',
    'Interpreter',
    'NexenError',
    'ProgramError',
    'populate_native_registry',
]
