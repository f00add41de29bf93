# Outbound side of the worker connections: one event queue per open stream.
from __future__ import annotations

import json
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class WorkerChannel:
    worker_id: str
    events: queue.Queue = field(default_factory=queue.Queue)


def format_sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


class ConnectionHub:
    def __init__(self):
        self._lock = threading.Lock()
        self._channels: dict[str, WorkerChannel] = {}

    def connect(self, worker_id: str | None = None) -> WorkerChannel:
        channel = WorkerChannel(worker_id or uuid.uuid4().hex)
        with self._lock:
            self._channels[channel.worker_id] = channel
        return channel

    def disconnect(self, worker_id: str) -> bool:
        with self._lock:
            return self._channels.pop(worker_id, None) is not None

    def worker_ids(self) -> list[str]:
        """Connected workers, oldest connection first."""
        with self._lock:
            return list(self._channels)

    def __contains__(self, worker_id) -> bool:
        with self._lock:
            return worker_id in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def send(self, worker_id: str, event: str, payload: dict) -> bool:
        with self._lock:
            channel = self._channels.get(worker_id)
        if channel is None:
            logger.debug(f"dropping {event} for gone worker {worker_id}")
            return False
        channel.events.put_nowait((event, payload))
        return True

    def broadcast(self, event: str, payload: dict) -> int:
        with self._lock:
            channels = list(self._channels.values())
        for channel in channels:
            channel.events.put_nowait((event, payload))
        return len(channels)

    def stream(self, channel: WorkerChannel, keepalive_s: float = 15.0, on_close=None):
        """Yield SSE frames for one channel until the client goes away.

        Keepalive comments go out when the queue is idle so a dead
        connection is noticed on the next write.
        """
        try:
            while True:
                try:
                    event, payload = channel.events.get(timeout=keepalive_s)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield format_sse(event, payload)
        finally:
            if on_close is not None:
                on_close()
