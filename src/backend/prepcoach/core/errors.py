"""Error taxonomy for the document and session pipelines.

Every error carries a short ``user_message`` that is safe to show to the
caller and an HTTP ``status_code`` used by the API exception handler.
Diagnostic detail stays in ``str(exc)`` and the logs.
"""

from enum import Enum


class PrepCoachError(Exception):
    status_code = 500
    default_message = "Something went wrong. Please try again later."

    def __init__(self, detail: str | None = None, user_message: str | None = None):
        self.user_message = user_message or self.default_message
        super().__init__(detail or self.user_message)


class ValidationError(PrepCoachError):
    """Bad or missing input. Not retryable without fixing the input."""

    status_code = 400
    default_message = "Invalid request."


class PreconditionError(PrepCoachError):
    """Required prior state is missing, e.g. documents not uploaded."""

    status_code = 400
    default_message = "Please upload both resume and job description before starting chat."


class NotFoundError(PrepCoachError):
    status_code = 404
    default_message = "Document not found."


class NoActiveSessionError(PrepCoachError):
    status_code = 400
    default_message = "No active chat session. Please start a new chat."


class ExtractionError(PrepCoachError):
    """The uploaded file could not be turned into text.

    ``reason`` distinguishes the failure for diagnostics (``empty``,
    ``not_pdf``, ``encrypted``, ``parse_failed``, ``no_text``); callers
    all see the same message.
    """

    status_code = 400
    default_message = "Failed to parse PDF file. Please ensure it is a valid, text-based PDF."

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        super().__init__(detail or f"PDF extraction failed: {reason}")


class EmbeddingFailure(str, Enum):
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    UNREACHABLE = "unreachable"
    UNKNOWN = "unknown"


_EMBEDDING_MESSAGES = {
    EmbeddingFailure.AUTH_FAILURE: "Embedding service authentication failed. Please check API key configuration.",
    EmbeddingFailure.RATE_LIMITED: "Embedding service rate limit exceeded. Please try again later.",
    EmbeddingFailure.UNREACHABLE: "Unable to connect to the embedding service. Please check your internet connection.",
    EmbeddingFailure.UNKNOWN: "Failed to generate embeddings. Please try again later.",
}


class EmbeddingError(PrepCoachError):
    """Failure at the embedding service boundary.

    ``RATE_LIMITED`` and ``UNREACHABLE`` are worth retrying with backoff on
    the caller side; nothing in this package retries.
    """

    def __init__(
        self,
        kind: EmbeddingFailure,
        detail: str | None = None,
        chunk_index: int | None = None,
    ):
        self.kind = kind
        self.chunk_index = chunk_index
        super().__init__(detail or kind.value, user_message=_EMBEDDING_MESSAGES[kind])

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 429 if self.kind is EmbeddingFailure.RATE_LIMITED else 502

    @property
    def retryable(self) -> bool:
        return self.kind in (EmbeddingFailure.RATE_LIMITED, EmbeddingFailure.UNREACHABLE)


class CompletionError(PrepCoachError):
    status_code = 502
    default_message = "The language model is unavailable. Please try again later."


class StorageError(PrepCoachError):
    status_code = 502
    default_message = "Failed to store the document. Please try again later."
