# Reference worker: listens on the event stream and trial-divides each range it is handed.
from __future__ import annotations

import json
import time

import requests

from .trial import find_divisor


def iter_sse(lines):
    """Turn an iterable of text lines into (event, data) pairs."""
    event, data = "message", []
    for line in lines:
        if line is None:
            continue
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        if not line:
            if data:
                yield event, json.loads("\n".join(data))
            event, data = "message", []
        elif line.startswith(":"):
            continue
        elif line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data.append(line[5:].lstrip())
    if data:
        yield event, json.loads("\n".join(data))


class PoolWorker:
    def __init__(self, base_url: str, session=None, scan=find_divisor,
                 read_timeout: float = 90.0, out=print):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.scan = scan
        self.read_timeout = read_timeout
        self.out = out
        self.worker_id: str | None = None
        self.number: int | None = None
        self.factored: set[int] = set()
        self.ranges_done = 0

    def _post(self, path: str, payload: dict):
        r = self.session.post(f"{self.base_url}{path}", json={"worker": self.worker_id, **payload},
                              timeout=self.read_timeout)
        if r.status_code >= 500:
            r.raise_for_status()
        return r

    def handle(self, event: str, data: dict) -> None:
        if event == "hello":
            self.worker_id = data["worker"]
            self.out(f"worker_id {self.worker_id}", flush=True)
            self._post("/api/request_task", {})
        elif event == "new_task":
            self.run_task(data)
        elif event == "factored":
            self.factored.add(int(data["number"]))
            self.out(f"factored {data['number']} = {data['factor']} × ...", flush=True)
        elif event == "progress_update":
            self.out(f"progress {data['progress']}% ({data['completed']}/{data['total']}) "
                     f"elapsed_ms={data['elapsedMs']}", flush=True)
        elif event == "factor_rejected":
            self.out(f"factor_rejected {data.get('factor')}: {data.get('error')}", flush=True)

    def run_task(self, task: dict) -> None:
        number = int(task["number"])
        if number in self.factored:
            return
        if number != self.number:
            self.number = number
            self.ranges_done = 0
        start, end = int(task["start"]), int(task["end"])
        t0 = time.time()
        d = self.scan(number, start, end)
        self.out(f"range {start}-{end} scanned in {round(time.time() - t0, 3)}s", flush=True)
        if d:
            self._post("/api/factor_found", {"factor": str(d), "number": str(number)})
        else:
            self.ranges_done += 1
            self._post("/api/task_complete", {"start": str(start), "number": str(number)})

    def run(self) -> None:
        """Process events until the server closes the stream."""
        with self.session.get(f"{self.base_url}/api/events", stream=True,
                              timeout=(10, self.read_timeout)) as resp:
            resp.raise_for_status()
            for event, data in iter_sse(resp.iter_lines(decode_unicode=True)):
                self.handle(event, data)
