class ReconciliationError(Exception):
    """Base class for every error raised by the reconciliation engine."""


class InsufficientSources(ReconciliationError, ValueError):
    """
    Raised when a run has fewer than three usable sources (or more than four).

    Attributes:
        failures: dict mapping slot index to the read error message for that slot.
    """

    def __init__(self, message, failures=None):
        super().__init__(message)
        self.failures = dict(failures or {})


class SourceReadFailure(ReconciliationError, OSError):
    """Raised when a single source file cannot be read."""

    def __init__(self, slot, path, reason):
        super().__init__(f"Không đọc được File {slot} ({path}): {reason}")
        self.slot = slot
        self.path = path
        self.reason = reason


class UnknownFeature(ReconciliationError, KeyError):
    """Raised when a final-value override targets a feature not in the current run."""


class NoRunLoaded(ReconciliationError, RuntimeError):
    """Raised when an override or export is requested before any run has completed."""
