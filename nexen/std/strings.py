from typing import Any, List

from nexen.builtin_function import NativeRegistry
from nexen.errors import TypeMismatch
from nexen.types import as_number, type_name


def std_len(args: List[Any]) -> Any:
    text = args[0]
    if not isinstance(text, str):
        raise TypeMismatch(f"len expects Text, got {type_name(text)}")
    return float(len(text))


def std_tonumber(args: List[Any]) -> Any:
    return as_number(args[0])


def register_string_functions(registry: NativeRegistry):
    registry.register('len', std_len, 1)
    registry.register('tonumber', std_tonumber, 1)
