class CoordinatorError(Exception):
    """Base class for every error the coordinator raises."""


class InvalidArgument(CoordinatorError, ValueError):
    """Bad target value or configuration value."""


class InvalidFactor(CoordinatorError, ValueError):
    """A factor claim that does not divide the current target."""


class AlreadyFactored(CoordinatorError):
    """Work was requested after the current target was factored."""


class MalformedMessage(CoordinatorError, ValueError):
    """An inbound worker message with a missing or unparseable field."""


class UnknownWorker(CoordinatorError, LookupError):
    """A message from a worker id with no open connection."""


class NoTarget(CoordinatorError):
    """Work was requested before any target was loaded."""
