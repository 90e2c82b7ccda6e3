from __future__ import annotations

from uuid import uuid4


def new_trace_id() -> str:
    return uuid4().hex


class TrackedError(Exception):
    def __init__(self, message: str, *, error_type: str, trace_id: str | None = None) -> None:
        self.error_type = error_type
        self.trace_id = trace_id or new_trace_id()
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def with_trace(self) -> str:
        return f"{self.args[0]} (trace_id={self.trace_id})"


class CheckoutValidationError(TrackedError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, error_type="validation", trace_id=trace_id)


class SourceUnavailableError(TrackedError):
    def __init__(self, message: str, *, source_id: str, tier: str, trace_id: str | None = None) -> None:
        self.source_id = source_id
        self.tier = tier
        super().__init__(message, error_type="source_unavailable", trace_id=trace_id)


class SubmissionNetworkError(TrackedError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, error_type="submission_network", trace_id=trace_id)


class SubmissionLogicalError(TrackedError):
    def __init__(self, message: str, *, status_code: int | None = None, trace_id: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, error_type="submission_logical", trace_id=trace_id)


class PersistenceError(TrackedError):
    def __init__(self, message: str, *, key: str | None = None, trace_id: str | None = None) -> None:
        self.key = key
        super().__init__(message, error_type="persistence", trace_id=trace_id)


__all__ = [
    "new_trace_id",
    "TrackedError",
    "CheckoutValidationError",
    "SourceUnavailableError",
    "SubmissionNetworkError",
    "SubmissionLogicalError",
    "PersistenceError",
]
