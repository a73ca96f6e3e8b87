import builtins
from typing import Any, List

from nexen.builtin_function import NativeRegistry
from nexen.errors import ArityError
from nexen.types import EndOfBlock, as_text


def std_print(args: List[Any]) -> Any:
    if len(args) < 1:
        raise ArityError("Not enough arguments for 'print'")
    print(''.join(as_text(a) for a in args))
    return EndOfBlock()


def std_input(args: List[Any]) -> Any:
    if len(args) > 1:
        raise ArityError(f"'input' expects at most 1 argument, got {len(args)}")
    prompt = as_text(args[0]) if args else ''
    try:
        return builtins.input(prompt)
    except (EOFError, OSError):
        return ''


def register_console_functions(registry: NativeRegistry):
    registry.register('print', std_print)
    registry.register('println', std_print)
    registry.register('input', std_input)
