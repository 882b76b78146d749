"""
Failure classification for relay errors.

Errors that reach a participant are never raw exception text. Every failure
the relay reports to a client carries a FailureKind and a human-readable
message, wrapped in a FailureDetail payload.

Only failures that are reported to a single participant go through here
(pack generation, basic land fetches). Unknown card references and events
for a session that does not exist are ignored, not reported.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Catalog failures
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    EMPTY_POOL = "empty_pool"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail payload."""
        return FailureDetail(kind=self.kind, message=self.message, detail=self.detail)


def unknown_failure(message: str, exc: Exception | None = None) -> FailureDetail:
    """Classify an unexpected exception without leaking its text to the client."""
    return FailureDetail(
        kind=FailureKind.UNKNOWN,
        message=message,
        detail=type(exc).__name__ if exc is not None else None,
    )
