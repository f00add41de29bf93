from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Progress:
    percent: int
    completed: int
    total: int
    elapsed_ms: int

    def as_payload(self) -> dict:
        return {
            "progress": self.percent,
            "completed": self.completed,
            "total": self.total,
            "elapsedMs": self.elapsed_ms,
        }


class ProgressTracker:
    """Reads completion straight off the allocator; keeps nothing itself."""

    def __init__(self, targets, allocator, clock=time.time):
        self.targets = targets
        self.allocator = allocator
        self.clock = clock

    def snapshot(self) -> Progress:
        target = self.targets.current
        completed = self.allocator.completed_count
        total = target.total_ranges if target else 0
        percent = min(100, completed * 100 // total) if total > 0 else 0
        elapsed_ms = int((self.clock() - target.started_at) * 1000) if target else 0
        return Progress(percent, completed, total, max(0, elapsed_ms))
