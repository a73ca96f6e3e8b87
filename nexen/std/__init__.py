from typing import Optional

from nexen.builtin_function import NativeRegistry
from .console import register_console_functions
from .numeric import register_numeric_functions
from .strings import register_string_functions


def populate_native_registry(registry: Optional[NativeRegistry] = None) -> NativeRegistry:
    """Register the standard native functions and return the registry."""
    if registry is None:
        registry = NativeRegistry()
    register_string_functions(registry)
    register_console_functions(registry)
    register_numeric_functions(registry)
    return registry
