"""Error taxonomy for the route provider.

Address resolution errors are raised before any remote call is made, so a
caller seeing them knows nothing was created.  Errors coming out of the
broker are wrapped with the operation and route that failed; the original
exception stays reachable through ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class RouteError(Exception):
    """Base class for all route provider exceptions."""


class BrokerError(RouteError):
    """Raised by broker implementations when a policy API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QueryError(RouteError):
    """Raised when listing static routes fails."""


class NotFoundError(RouteError, KeyError):
    """Raised when a node is not present in the node directory."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class UnknownNodeError(NotFoundError):
    """Raised when a route targets a node the directory has never seen."""


class NoAddressError(RouteError):
    """Raised when a node reports no address of the required family."""


class CreateFailedError(RouteError):
    """Raised when the policy store rejects a static route create."""


class DeleteFailedError(RouteError):
    """Raised when the policy store rejects a static route delete."""


class RealizationError(RouteError):
    """Base class for failures observed after a successful create."""

    def __init__(self, message: str, intent_path: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.intent_path = intent_path
        self.attempts = attempts


class RealizationTimeoutError(RealizationError):
    """Raised when REALIZED was not observed within the polling budget."""


class RealizationFailedError(RealizationError):
    """Raised when the policy store reports a terminal error state."""


class RealizationCancelledError(RealizationError):
    """Raised when the caller cancels a realization poll."""
