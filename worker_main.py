import os, sys, time, random
import requests

from factorpool.worker import PoolWorker

BASE_URL     = (os.getenv("BASE_URL", "http://127.0.0.1:3000") or "http://127.0.0.1:3000").rstrip("/")
READ_TIMEOUT = float(os.getenv("READ_TIMEOUT", "90"))
MAX_TRIES    = int(os.getenv("MAX_TRIES", "4"))

# Cloud Run exposes this; fallback to 0 when not present
TASK_INDEX = int(os.getenv("TASK_INDEX", os.getenv("CLOUD_RUN_TASK_INDEX", "0")))


def main() -> int:
    # stagger start so a batch of workers does not connect at once
    jitter = min(30.0, 3.0 * TASK_INDEX + random.uniform(0, 5))
    print("task_index", TASK_INDEX, "jitter_s", round(jitter, 2), flush=True)
    time.sleep(jitter)

    session = requests.Session()
    session.headers.update({"User-Agent": "factorpool-worker/1.0"})
    worker = PoolWorker(BASE_URL, session=session, read_timeout=READ_TIMEOUT)

    for t in range(1, MAX_TRIES + 1):
        try:
            worker.run()
            print("stream_closed", flush=True)
            return 0
        except requests.RequestException as e:
            print("requests_error", f"try={t}", "err=" + repr(e), flush=True)
        # small exponential backoff with jitter
        time.sleep(min(15.0, (2 ** t) + random.uniform(0, 2)))

    print("final_error", "gave up", flush=True)
    return 2


if __name__ == "__main__":
    sys.exit(main())
