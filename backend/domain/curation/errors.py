from __future__ import annotations


class CurationError(Exception):
    """Base error for curation operations.

    `user_message` is safe to show to end users; the exception text may carry
    technical detail for logs.
    """

    kind = "curation"
    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", *, user_message: str | None = None) -> None:
        super().__init__(message or self.default_user_message)
        self.user_message = user_message or self.default_user_message


class ConfigurationError(CurationError):
    """Missing credentials or keys; the operation is never attempted."""

    kind = "configuration"
    default_user_message = "The service is not configured."


class CurationValidationError(CurationError):
    """Rejected before any network call."""

    kind = "validation"

    def __init__(self, message: str, *, user_message: str | None = None) -> None:
        super().__init__(message, user_message=user_message or message)


class RecordNotFoundError(CurationValidationError):
    kind = "not_found"


class InsufficientWatchHistoryError(CurationValidationError):
    def __init__(self, *, watched_count: int, required: int) -> None:
        super().__init__(
            f"taste analysis needs {required} watched movies, got {watched_count}",
            user_message=f"Please mark at least {required} movies as watched for a good analysis.",
        )
        self.watched_count = watched_count
        self.required = required


class TransportError(CurationError):
    """Fetch/store failure; surfaced as a transient message, never retried."""

    kind = "transport"


class SchemaError(CurationError):
    """Remote payload failed validation (treated like TransportError by callers)."""

    kind = "schema"
