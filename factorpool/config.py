from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import InvalidArgument


def _num(env, name: str, default, cast):
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    target_file: str = "target.txt"
    results_file: str = "results.txt"
    poll_interval_s: float = 5.0
    keepalive_s: float = 15.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            host=env.get("FACTORPOOL_HOST") or cls.host,
            port=_num(env, "PORT", cls.port, int),
            target_file=env.get("TARGET_FILE") or cls.target_file,
            results_file=env.get("RESULTS_FILE") or cls.results_file,
            poll_interval_s=_num(env, "POLL_INTERVAL_S", cls.poll_interval_s, float),
            keepalive_s=_num(env, "KEEPALIVE_S", cls.keepalive_s, float),
            log_level=(env.get("LOG_LEVEL") or cls.log_level).upper(),
        )
