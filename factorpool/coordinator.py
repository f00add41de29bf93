from __future__ import annotations

import logging
import threading
import time

from .allocator import Range, RangeAllocator
from .arbiter import FactorResult, ResultArbiter
from .errors import AlreadyFactored, InvalidFactor, MalformedMessage, NoTarget, UnknownWorker
from .hub import ConnectionHub, WorkerChannel
from .progress import Progress, ProgressTracker
from .target import RANGE_SIZE, Target, TargetState, parse_target

logger = logging.getLogger(__name__)


def _parse_int_field(payload: dict, name: str, required: bool = True) -> int | None:
    raw = payload.get(name) if isinstance(payload, dict) else None
    if raw is None:
        if required:
            raise MalformedMessage(f"missing {name!r}")
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    s = str(raw).strip()
    if not s.isdecimal():
        raise MalformedMessage(f"{name!r} must be a decimal integer, got {s[:40]!r}")
    return int(s)


class Coordinator:
    """All shared search state, behind one lock. Outbound events are
    queued while the lock is held.
    """

    def __init__(self, hub: ConnectionHub | None = None, sink=None,
                 range_size: int = RANGE_SIZE, clock=time.time):
        self.hub = hub or ConnectionHub()
        self.clock = clock
        self.targets = TargetState(range_size)
        self.arbiter = ResultArbiter(sink)
        self.allocator = RangeAllocator(self.arbiter, range_size)
        self.progress = ProgressTracker(self.targets, self.allocator, clock)
        self._lock = threading.Lock()

    # ---- payloads ----------------------------------------------------------

    def _task_payload(self, r: Range) -> dict:
        target = self.targets.current
        return {
            "number": str(target.value),
            "start": str(r.start),
            "end": str(r.end),
            "totalRanges": str(target.total_ranges),
        }

    def _factored_payload(self) -> dict:
        return {"factor": str(self.arbiter.result.factor), "number": str(self.targets.value)}

    def _require(self, worker_id: str) -> Target:
        if worker_id not in self.hub:
            raise UnknownWorker(f"no open connection for worker {worker_id!r}")
        if self.targets.current is None:
            raise NoTarget("no target loaded yet")
        return self.targets.current

    def _is_stale(self, worker_id: str, number: int | None, target: Target) -> bool:
        if number is not None and number != target.value:
            logger.info(f"dropping report from {worker_id} for old target {number}")
            return True
        return False

    # ---- target lifecycle --------------------------------------------------

    def _set_target(self, value: int) -> Target:
        target = self.targets.set(value, self.clock())
        self.allocator.reset(target.total_ranges)
        self.arbiter.reset()
        logger.info(f"target set to {target.value} (bound {target.search_bound}, "
                    f"{target.total_ranges} ranges)")
        for worker_id in self.hub.worker_ids():
            self.hub.send(worker_id, "new_task", self._task_payload(self.allocator.allocate(worker_id)))
        return target

    def set_target(self, value: int) -> Target:
        with self._lock:
            return self._set_target(value)

    def load_target(self, text) -> Target | None:
        """Parse a target read from the source; reset only if it changed."""
        value = parse_target(text)
        with self._lock:
            if value == self.targets.value:
                return None
            if self.targets.current is not None:
                logger.info(f"target changed to {value}")
            return self._set_target(value)

    # ---- worker events -----------------------------------------------------

    def connect(self) -> WorkerChannel:
        with self._lock:
            channel = self.hub.connect()
            worker_id = channel.worker_id
            logger.info(f"worker {worker_id} connected")
            self.hub.send(worker_id, "hello", {"worker": worker_id})
            if self.arbiter.result is not None:
                self.hub.send(worker_id, "factored", self._factored_payload())
            else:
                self.hub.send(worker_id, "progress_update", self.progress.snapshot().as_payload())
            return channel

    def request_task(self, worker_id: str) -> Range | None:
        with self._lock:
            self._require(worker_id)
            try:
                r = self.allocator.allocate(worker_id)
            except AlreadyFactored:
                self.hub.send(worker_id, "factored", self._factored_payload())
                return None
            self.hub.send(worker_id, "new_task", self._task_payload(r))
            return r

    def task_complete(self, worker_id: str, payload: dict) -> Range | None:
        start = _parse_int_field(payload, "start")
        number = _parse_int_field(payload, "number", required=False)
        with self._lock:
            target = self._require(worker_id)
            if self._is_stale(worker_id, number, target):
                return None
            nxt = self.allocator.complete(worker_id, start)
            logger.debug(f"worker {worker_id} finished range {start}")
            self.hub.broadcast("progress_update", self.progress.snapshot().as_payload())
            if nxt is not None:
                self.hub.send(worker_id, "new_task", self._task_payload(nxt))
            return nxt

    def factor_found(self, worker_id: str, payload: dict) -> FactorResult | None:
        if not isinstance(payload, dict) or payload.get("factor") is None:
            raise MalformedMessage("missing 'factor'")
        number = _parse_int_field(payload, "number", required=False)
        with self._lock:
            target = self._require(worker_id)
            if self._is_stale(worker_id, number, target):
                return None
            try:
                result = self.arbiter.report(worker_id, payload["factor"], target.value)
            except InvalidFactor as e:
                logger.warning(f"rejected factor from {worker_id}: {e}")
                self.hub.send(worker_id, "factor_rejected",
                              {"factor": str(payload["factor"])[:80], "error": str(e)})
                raise
            if result is not None:
                self.hub.broadcast("factored", self._factored_payload())
            return result

    def disconnect(self, worker_id: str) -> None:
        with self._lock:
            self.hub.disconnect(worker_id)
            rewound = self.allocator.disconnect(worker_id)
            if rewound is not None:
                logger.info(f"worker {worker_id} disconnected, cursor rewound to {rewound}")
            else:
                logger.info(f"worker {worker_id} disconnected")

    # ---- read side ---------------------------------------------------------

    def snapshot(self) -> Progress:
        with self._lock:
            return self.progress.snapshot()

    def status(self) -> dict:
        with self._lock:
            target = self.targets.current
            result = self.arbiter.result
            return {
                "number": str(target.value) if target else None,
                "searchBound": str(target.search_bound) if target else None,
                "totalRanges": str(target.total_ranges) if target else None,
                "cursor": str(self.allocator.cursor),
                "workers": len(self.hub),
                "assigned": len(self.allocator.assignments),
                "factored": result is not None,
                "factor": str(result.factor) if result else None,
                "cofactor": str(result.cofactor) if result else None,
                **self.progress.snapshot().as_payload(),
            }
