"""
Exception hierarchy for lotkeeper.

Validation and guard failures are raised locally before any remote call.
Remote and sync failures wrap whatever the collection reported. Partial
batch failures carry the per-item report so callers can reconcile which
items actually completed.
"""

from typing import Optional

from lotkeeper.models import BatchReport


class LotkeeperError(Exception):
    """Base class for all lotkeeper errors."""
    pass


class ValidationError(LotkeeperError):
    """Raised when user-supplied fields are invalid. No remote call is made."""
    pass


class GuardError(LotkeeperError):
    """Raised when a guarded operation is refused, such as deleting the last portfolio."""
    pass


class RemoteError(LotkeeperError):
    """Raised when a collection operation rejects or reports errors."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class SyncError(LotkeeperError):
    """Delivered when a snapshot subscription fails."""
    pass


class PartialBatchError(LotkeeperError):
    """
    Raised when some but not all items of a sequential batch succeeded.

    Attributes:
        report: Per-item outcomes for the whole batch
    """

    def __init__(self, message: str, report: BatchReport):
        super().__init__(message)
        self.report = report

    def __str__(self) -> str:
        base = super().__str__()
        return (
            f"{base} (succeeded={self.report.succeeded}, "
            f"failed={self.report.failed}, "
            f"not_attempted={self.report.not_attempted})"
        )
