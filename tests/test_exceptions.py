"""Tests for application exceptions."""

from issuedigger.exceptions import (
    BookkeepingError,
    ConfigurationError,
    DispatchError,
    EmbeddingError,
    ErrorCode,
    GitHubError,
    IssueDiggerError,
    MetadataError,
    QueueError,
    SummarizationError,
    ValidationError,
    VectorStoreError,
    WebhookValidationError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow DIG-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("DIG-")
            assert len(code.value) == 8  # DIG-XXXX

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestIssueDiggerError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = IssueDiggerError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}

    def test_exception_with_details(self) -> None:
        """Exception can have additional details."""
        error = IssueDiggerError(
            "Validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            details={"field": "action"},
        )
        assert error.details == {"field": "action"}

    def test_to_dict(self) -> None:
        """Exception converts to API response dict."""
        error = IssueDiggerError(
            "Something went wrong",
            code=ErrorCode.INTERNAL_ERROR,
            details={"trace_id": "abc123"},
        )

        assert error.to_dict() == {
            "error": {
                "code": "DIG-1000",
                "message": "Something went wrong",
                "details": {"trace_id": "abc123"},
            }
        }

    def test_str_representation(self) -> None:
        """Exception string is the message."""
        assert str(IssueDiggerError("Test error")) == "Test error"


class TestConfigurationError:
    """Tests for configuration exception."""

    def test_default_code(self) -> None:
        """ConfigurationError has correct default code."""
        error = ConfigurationError("Missing env var")
        assert error.code == ErrorCode.CONFIGURATION_ERROR
        assert isinstance(error, IssueDiggerError)


class TestValidationError:
    """Tests for validation exception."""

    def test_default_code(self) -> None:
        """ValidationError has correct default code."""
        assert ValidationError("Invalid input").code == ErrorCode.VALIDATION_ERROR

    def test_custom_code(self) -> None:
        """ValidationError can name the specific rejection."""
        error = ValidationError("No installation", code=ErrorCode.INSTALLATION_MISSING)
        assert error.code == ErrorCode.INSTALLATION_MISSING


class TestWebhookValidationError:
    """Tests for signature mismatch exception."""

    def test_carries_signatures(self) -> None:
        """Received and expected signatures are kept on the exception."""
        error = WebhookValidationError("Invalid signature", got="sha256=aa", expected="sha256=bb")
        assert error.got == "sha256=aa"
        assert error.expected == "sha256=bb"
        assert error.code == ErrorCode.SIGNATURE_MISMATCH

    def test_signatures_not_in_response(self) -> None:
        """Signatures never leak into the API representation."""
        error = WebhookValidationError("Invalid signature", got="sha256=aa", expected="sha256=bb")
        rendered = str(error.to_dict())
        assert "sha256=aa" not in rendered
        assert "sha256=bb" not in rendered


class TestDomainErrors:
    """Tests for default codes of domain exceptions."""

    def test_embedding_error(self) -> None:
        """EmbeddingError has correct default code."""
        assert EmbeddingError("Service unavailable").code == ErrorCode.EMBEDDING_SERVICE_ERROR

    def test_summarization_error(self) -> None:
        """SummarizationError has correct code."""
        assert SummarizationError("Model unavailable").code == ErrorCode.SUMMARIZATION_ERROR

    def test_vector_store_error(self) -> None:
        """VectorStoreError can signal an ID collision."""
        assert VectorStoreError("Connection failed").code == ErrorCode.VECTOR_STORE_ERROR
        error = VectorStoreError("Exists", code=ErrorCode.VECTOR_EXISTS)
        assert error.code == ErrorCode.VECTOR_EXISTS

    def test_metadata_error(self) -> None:
        """MetadataError has correct code."""
        assert MetadataError("Bad metadata").code == ErrorCode.INVALID_METADATA

    def test_bookkeeping_error(self) -> None:
        """BookkeepingError has correct code."""
        assert BookkeepingError("Redis down").code == ErrorCode.BOOKKEEPING_ERROR

    def test_github_error(self) -> None:
        """GitHubError has correct default code."""
        assert GitHubError("Not found").code == ErrorCode.GITHUB_API_ERROR

    def test_queue_error(self) -> None:
        """QueueError can signal a full queue."""
        assert QueueError("Broken").code == ErrorCode.QUEUE_ERROR
        assert QueueError("Full", code=ErrorCode.QUEUE_FULL).code == ErrorCode.QUEUE_FULL

    def test_dispatch_error(self) -> None:
        """DispatchError defaults to an unknown message type."""
        assert DispatchError("Unknown").code == ErrorCode.UNKNOWN_MESSAGE_TYPE
