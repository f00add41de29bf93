from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import AlreadyFactored
from .target import RANGE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Range:
    start: int
    end: int


class RangeAllocator:
    """Fixed-size divisor ranges off a cursor starting at 1.

    Disconnect rewinds the cursor to the lost range; ranges above it may
    be issued twice.
    """

    def __init__(self, arbiter, range_size: int = RANGE_SIZE):
        self.arbiter = arbiter
        self.range_size = range_size
        self.reset()

    def reset(self, total_ranges: int = 0) -> None:
        self.cursor = 1
        self.completed: set[int] = set()
        self.assignments: dict[str, int] = {}
        self.total_ranges = total_ranges

    def allocate(self, worker_id: str) -> Range:
        if self.arbiter.result is not None:
            raise AlreadyFactored(f"factor {self.arbiter.result.factor} already found")
        start = self.cursor
        self.assignments[worker_id] = start
        self.cursor += self.range_size
        logger.debug(f"assigned {start} to {worker_id}")
        return Range(start, start + self.range_size - 1)

    def _counts(self, start: int) -> bool:
        if start < 1 or (start - 1) % self.range_size:
            return False
        return (start - 1) // self.range_size < self.total_ranges

    def complete(self, worker_id: str, start: int) -> Range | None:
        """Record a finished range and return the worker's next one.

        Returns None once a factor has been found.
        """
        if self._counts(start):
            self.completed.add(start)
        else:
            logger.debug(f"range {start} from {worker_id} is outside the search, not counted")
        self.assignments.pop(worker_id, None)
        if self.arbiter.result is not None:
            return None
        return self.allocate(worker_id)

    def disconnect(self, worker_id: str) -> int | None:
        """Forget a worker; returns the new cursor if it was rewound."""
        start = self.assignments.pop(worker_id, None)
        if start is not None and start < self.cursor:
            self.cursor = start
            return start
        return None

    def assignment_of(self, worker_id: str) -> int | None:
        return self.assignments.get(worker_id)

    @property
    def completed_count(self) -> int:
        return len(self.completed)
