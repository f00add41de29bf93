from __future__ import annotations

from dataclasses import dataclass

from .bigsqrt import isqrt_newton
from .errors import InvalidArgument

RANGE_SIZE = 1_000_000


@dataclass(frozen=True)
class Target:
    value: int
    search_bound: int
    total_ranges: int
    started_at: float


def parse_target(text) -> int:
    """Parse a target as read from disk: whitespace and quotes are ignored."""
    if isinstance(text, (bytes, bytearray)):
        text = text.decode()
    s = str(text).strip().replace('"', "").replace("'", "").strip()
    if not s.isdecimal():
        raise InvalidArgument(f"target must be a positive integer, got {s[:40]!r}")
    return check_target(int(s))


def check_target(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"target must be an integer, got {type(value).__name__}")
    if value < 1:
        raise InvalidArgument(f"target must be positive, got {value}")
    return value


class TargetState:
    """Current target; bounds are only computed in set()."""

    def __init__(self, range_size: int = RANGE_SIZE):
        self.range_size = range_size
        self.current: Target | None = None

    def set(self, value: int, now: float) -> Target:
        value = check_target(value)
        search_bound = isqrt_newton(value) + 1
        total_ranges = search_bound // self.range_size + 1
        self.current = Target(value, search_bound, total_ranges, now)
        return self.current

    @property
    def value(self) -> int | None:
        return self.current.value if self.current else None

    @property
    def total_ranges(self) -> int:
        return self.current.total_ranges if self.current else 0
