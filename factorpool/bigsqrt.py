# Exact integer square root for targets far beyond float precision.
from __future__ import annotations

from .errors import InvalidArgument


def isqrt_newton(n: int) -> int:
    """Floor of sqrt(n) by Newton's method over integers.

    Starts at x0 = 1 and iterates x1 = (n // x0 + x0) >> 1 until the
    sequence settles on a value or oscillates between x and x + 1.
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidArgument(f"isqrt needs an integer, got {type(n).__name__}")
    if n < 0:
        raise InvalidArgument("square root of negative number")
    if n < 2:
        return n
    # the step out of x0 = 1 is always taken, otherwise n = 4 stops at 1
    x0 = (n + 1) >> 1
    while True:
        x1 = (n // x0 + x0) >> 1
        if x0 == x1 or x0 == x1 - 1:
            return x0
        x0 = x1
