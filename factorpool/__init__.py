from .allocator import Range, RangeAllocator
from .arbiter import FactorResult, ResultArbiter, format_result_line
from .bigsqrt import isqrt_newton
from .coordinator import Coordinator
from .errors import (
    AlreadyFactored,
    CoordinatorError,
    InvalidArgument,
    InvalidFactor,
    MalformedMessage,
    NoTarget,
    UnknownWorker,
)
from .hub import ConnectionHub
from .progress import Progress, ProgressTracker
from .target import RANGE_SIZE, Target, TargetState, parse_target

__all__ = [
    "RANGE_SIZE", "AlreadyFactored", "ConnectionHub", "Coordinator", "CoordinatorError",
    "FactorResult", "InvalidArgument", "InvalidFactor", "MalformedMessage", "NoTarget",
    "Progress", "ProgressTracker", "Range", "RangeAllocator", "ResultArbiter", "Target",
    "TargetState", "UnknownWorker", "format_result_line", "isqrt_newton", "parse_target",
]
