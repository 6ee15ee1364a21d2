"""Application exception hierarchy.

All custom exceptions inherit from IssueDiggerError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "DIG-1000"
    CONFIGURATION_ERROR = "DIG-1001"
    VALIDATION_ERROR = "DIG-1002"

    # Webhook errors (2xxx)
    SIGNATURE_MISSING = "DIG-2000"
    SIGNATURE_MISMATCH = "DIG-2001"
    EVENT_MALFORMED = "DIG-2002"
    INSTALLATION_MISSING = "DIG-2003"

    # Model errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "DIG-3000"
    EMBEDDING_DIMENSION_MISMATCH = "DIG-3001"
    SUMMARIZATION_ERROR = "DIG-3002"

    # Storage errors (4xxx)
    VECTOR_STORE_ERROR = "DIG-4000"
    VECTOR_EXISTS = "DIG-4001"
    INVALID_METADATA = "DIG-4002"
    BOOKKEEPING_ERROR = "DIG-4003"

    # GitHub API errors (5xxx)
    GITHUB_API_ERROR = "DIG-5000"
    GITHUB_AUTH_ERROR = "DIG-5001"

    # Queue errors (6xxx)
    QUEUE_ERROR = "DIG-6000"
    QUEUE_FULL = "DIG-6001"
    UNKNOWN_MESSAGE_TYPE = "DIG-6002"


class IssueDiggerError(Exception):
    """Base exception for all issuedigger errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(IssueDiggerError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(IssueDiggerError):
    """Input validation error (malformed or unsupported request)."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class WebhookValidationError(IssueDiggerError):
    """Webhook signature did not match.

    The received and expected signatures are kept on the exception for
    diagnostics only. They are deliberately not part of `details`, so they
    never reach an API response or a log line through `to_dict()`.
    """

    def __init__(self, message: str, got: str, expected: str) -> None:
        super().__init__(message, ErrorCode.SIGNATURE_MISMATCH)
        self.got = got
        self.expected = expected


class EmbeddingError(IssueDiggerError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class SummarizationError(IssueDiggerError):
    """Summarization service error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.SUMMARIZATION_ERROR, details)


class VectorStoreError(IssueDiggerError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class MetadataError(IssueDiggerError):
    """Stored or outgoing vector metadata failed schema validation."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_METADATA, details)


class BookkeepingError(IssueDiggerError):
    """Bookkeeping key-value store error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.BOOKKEEPING_ERROR, details)


class GitHubError(IssueDiggerError):
    """GitHub API error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GITHUB_API_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class QueueError(IssueDiggerError):
    """Work queue error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.QUEUE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class DispatchError(IssueDiggerError):
    """A queue message could not be decoded or dispatched."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_MESSAGE_TYPE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
