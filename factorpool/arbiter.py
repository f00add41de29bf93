from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import InvalidFactor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactorResult:
    factor: int
    cofactor: int
    reported_by: str


def parse_factor(raw) -> int:
    if isinstance(raw, bool):
        raise InvalidFactor(f"factor must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    s = str(raw).strip()
    if not s.isdecimal():
        raise InvalidFactor(f"factor must be a positive integer, got {s[:40]!r}")
    return int(s)


def format_result_line(target: int, factor: int) -> str:
    return f"{target} = {factor} × {target // factor}\n"


class ResultArbiter:
    """First valid factor report wins; later ones are ignored."""

    def __init__(self, sink=None):
        self.sink = sink
        self.result: FactorResult | None = None

    def reset(self) -> None:
        self.result = None

    def report(self, worker_id: str, raw_factor, target: int) -> FactorResult | None:
        if self.result is not None:
            logger.debug(f"late factor {raw_factor!r} from {worker_id} ignored")
            return None
        factor = parse_factor(raw_factor)
        if not 1 < factor < target:
            raise InvalidFactor(f"{factor} is not a nontrivial factor candidate of {target}")
        if target % factor:
            raise InvalidFactor(f"{factor} does not divide {target}")
        self.result = FactorResult(factor, target // factor, worker_id)
        logger.info(f"factor found by {worker_id}: {target} = {factor} × {self.result.cofactor}")
        if self.sink is not None:
            try:
                self.sink.append(format_result_line(target, factor))
            except OSError:
                logger.exception("could not persist result")
                # kept in the log so results.txt can be patched by hand
                logger.error(f"unsaved result: {format_result_line(target, factor).rstrip()}")
        return self.result
