from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from nexen.errors import ArityError, UndefinedReference


@dataclass
class BuiltinFunction:
    name: str
    arity: Optional[int]
    fn: Callable[[List[Any]], Any]

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


class NativeRegistry:
    """Name -> native function table consulted before user functions."""
    def __init__(self):
        self.functions: Dict[str, BuiltinFunction] = {}

    def register(self, name: str, fn: Callable[[List[Any]], Any], arity: Optional[int] = None):
        self.functions[name] = BuiltinFunction(name, arity, fn)

    def get(self, name: str) -> Optional[BuiltinFunction]:
        return self.functions.get(name)

    def has(self, name: str) -> bool:
        return name in self.functions

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def names(self) -> List[str]:
        return sorted(self.functions)

    def call(self, name: str, args: List[Any]) -> Any:
        func = self.get(name)
        if func is None:
            raise UndefinedReference(f"Native function '{name}' not found")
        # arity None means variadic
        if func.arity is not None and len(args) != func.arity:
            raise ArityError(f"'{name}' expects {func.arity} arguments, got {len(args)}")
        return func.fn(args)

    def extend(self, other: 'NativeRegistry'):
        self.functions.update(other.functions)
