from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from nexen.builtin_function import NativeRegistry
from nexen.errors import InternalError, UndefinedReference
from nexen.types import FunctionVal


class ScopeStack:
    """An ordered stack of name -> value frames, global frame first.

    Lookups scan from the innermost frame outwards. A frame is pushed for
    every block, loop and function call and must be popped on every exit
    path; `scope()` does both.
    """
    def __init__(self, registry: Optional[NativeRegistry] = None):
        self.frames: List[Dict[str, Any]] = [{}]
        # shared with the interpreter, never copied per frame
        self.registry = registry

    @property
    def depth(self) -> int:
        return len(self.frames)

    def push_scope(self):
        self.frames.append({})

    def pop_scope(self):
        if len(self.frames) == 1:
            raise InternalError('cannot pop the global scope')
        self.frames.pop()

    @contextmanager
    def scope(self) -> Iterator[Dict[str, Any]]:
        self.push_scope()
        try:
            yield self.frames[-1]
        finally:
            self.pop_scope()

    def declare(self, name: str, value: Any):
        self.frames[-1][name] = value

    def define_function(self, name: str, params: Tuple[str, ...], body: Any):
        self.declare(name, FunctionVal(name, tuple(params), body))

    def set(self, name: str, value: Any):
        for frame in reversed(self.frames):
            if name in frame:
                frame[name] = value
                return
        raise UndefinedReference(f"Variable '{name}' is not declared")

    def get(self, name: str) -> Optional[Any]:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return None

    def __contains__(self, name: str) -> bool:
        return any(name in frame for frame in self.frames)
