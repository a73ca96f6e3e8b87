import random
import time
from typing import Any, List

from nexen.builtin_function import NativeRegistry
from nexen.errors import TypeMismatch
from nexen.types import type_name


def fib_inner(n: float) -> float:
    if n <= 0.0:
        return 0.0
    if n == 1.0:
        return 1.0
    return fib_inner(n - 1.0) + fib_inner(n - 2.0)


def std_fib(args: List[Any]) -> Any:
    n = args[0]
    if not isinstance(n, float):
        raise TypeMismatch(f"Cannot calculate Fibonacci number for {type_name(n)}")
    return fib_inner(n)


def register_numeric_functions(registry: NativeRegistry):
    # not cryptographically meaningful
    rng = random.Random(time.time_ns())

    def std_rand(args: List[Any]) -> Any:
        return rng.random()

    registry.register('fib', std_fib, 1)
    registry.register('rand', std_rand, 0)
