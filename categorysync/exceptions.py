# categorysync/exceptions.py
"""
Exceptions raised by the category sync client.
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .strategies import StrategyAttempt


class CategorySyncError(Exception):
    """Base exception for category sync errors."""
    pass


class TransportFailure(CategorySyncError):
    """Raised when a request could not complete (network error or timeout)."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        path: Optional[str] = None,
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.timed_out = timed_out


class HttpRejection(CategorySyncError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, status_code: int, body: str = "", method: Optional[str] = None, path: Optional[str] = None):
        super().__init__(f"{method or 'request'} {path or ''} rejected with {status_code}: {body}".strip())
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path


class DiscoveryInconclusive(CategorySyncError):
    """No capability information could be obtained from the backend."""
    pass


class ExhaustedStrategies(CategorySyncError):
    """Raised when every update strategy failed or was skipped."""

    def __init__(self, attempts: List["StrategyAttempt"]):
        self.attempts = attempts
        last = next((a for a in reversed(attempts) if not a.skipped), None)
        self.last_status_code: Optional[int] = last.status_code if last else None
        self.last_body: Optional[str] = last.body if last else None
        tried = sum(1 for a in attempts if not a.skipped)
        super().__init__(
            f"All update strategies exhausted ({tried} tried, {len(attempts) - tried} skipped); "
            f"last status: {self.last_status_code}, last body: {self.last_body!r}"
        )


class StaleViewDiscard(CategorySyncError):
    """A response arrived after the view that requested it was torn down."""
    pass
