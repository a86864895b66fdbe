"""
Custom exception classes for the ChessWire content analysis pipeline.

Provides a hierarchy of exceptions for different error categories:
- Input errors (validation, notation parsing, batch capacity)
- Analysis errors (classification defects, timeouts, cancellation)
- Collaborator errors (voice rendering service)
- Configuration errors
"""

from typing import Any, Optional


class ChessWireError(Exception):
    """
    Base exception for all ChessWire errors.

    All custom exceptions in this project inherit from this class,
    allowing for broad exception catching when needed.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional error details as key-value pairs
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base = f"{base} ({details_str})"
        if self.cause:
            base = f"{base} [caused by: {self.cause}]"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }

    @property
    def is_client_error(self) -> bool:
        """Check if the caller can fix this error by changing the request."""
        return False


class ValidationError(ChessWireError):
    """
    Exception for request validation errors.

    Raised when a content item or analysis configuration has the wrong
    shape, size or type. Caller-fixable.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraints: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation
            value: The invalid value (will be truncated if too long)
            constraints: List of constraints that were violated
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if field is not None:
            details["field"] = field
        if value is not None:
            # Truncate long values
            str_value = str(value)
            details["value"] = str_value[:100] if len(str_value) > 100 else str_value
        if constraints is not None:
            details["constraints"] = constraints

        super().__init__(message, details=details, **kwargs)
        self.field = field
        self.value = value
        self.constraints = constraints or []

    @property
    def is_client_error(self) -> bool:
        return True


class CapacityError(ValidationError):
    """
    Exception for batch requests over the item limit.

    Raised before any item of the batch is processed.
    """

    def __init__(
        self,
        message: str = "Batch size limit exceeded",
        *,
        limit: int,
        received: int,
        **kwargs: Any,
    ) -> None:
        """
        Initialize capacity error.

        Args:
            message: Error message
            limit: Maximum number of items allowed
            received: Number of items in the request
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        details["limit"] = limit
        details["received"] = received

        super().__init__(message, field="items", details=details, **kwargs)
        self.limit = limit
        self.received = received


class ParseError(ChessWireError):
    """
    Exception for malformed move notation.

    Identifies the offending ply (1-based) whenever the failure can be
    attributed to a single move.
    """

    def __init__(
        self,
        message: str,
        *,
        ply_index: Optional[int] = None,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize parse error.

        Args:
            message: Error message
            ply_index: 1-based index of the ply that could not be parsed
            token: Raw notation token that failed
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if ply_index is not None:
            details["ply_index"] = ply_index
        if token is not None:
            details["token"] = token

        super().__init__(message, details=details, **kwargs)
        self.ply_index = ply_index
        self.token = token

    @property
    def is_client_error(self) -> bool:
        return True


class ClassificationError(ChessWireError):
    """
    Exception for internal invariant violations during analysis.

    Raised when a stage produces data it should never produce (for example
    a NaN evaluation). Treated as a defect, not as bad input.
    """

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        ply_index: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize classification error.

        Args:
            message: Error message
            stage: Pipeline stage where the violation occurred
                   (e.g., 'evaluation', 'emotion', 'key_moments')
            ply_index: Ply being processed, if any
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if stage is not None:
            details["stage"] = stage
        if ply_index is not None:
            details["ply_index"] = ply_index

        super().__init__(message, details=details, **kwargs)
        self.stage = stage
        self.ply_index = ply_index


class AnalysisTimeoutError(ChessWireError):
    """
    Exception for a batch item that exceeded its processing time.

    Only the timed-out item fails; its siblings keep running.
    """

    def __init__(
        self,
        message: str = "Analysis timed out",
        *,
        timeout_seconds: float,
        item_index: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        details["timeout_seconds"] = timeout_seconds
        if item_index is not None:
            details["item_index"] = item_index

        super().__init__(message, details=details, **kwargs)
        self.timeout_seconds = timeout_seconds
        self.item_index = item_index


class AnalysisCancelledError(ChessWireError):
    """Exception for batch items skipped after the batch was cancelled."""

    def __init__(
        self,
        message: str = "Batch cancelled before item started",
        *,
        item_index: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if item_index is not None:
            details["item_index"] = item_index

        super().__init__(message, details=details, **kwargs)
        self.item_index = item_index


class ConfigurationError(ChessWireError):
    """
    Exception for configuration errors.

    Raised when required application settings are missing or invalid.
    """

    def __init__(
        self,
        message: str,
        *,
        missing_keys: Optional[list[str]] = None,
        invalid_keys: Optional[dict[str, str]] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error message
            missing_keys: List of required configuration keys that are missing
            invalid_keys: Dict of invalid keys and their error messages
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        if invalid_keys:
            details["invalid_keys"] = invalid_keys

        super().__init__(message, details=details, **kwargs)
        self.missing_keys = missing_keys or []
        self.invalid_keys = invalid_keys or {}


class VoiceServiceError(ChessWireError):
    """
    Exception for voice rendering service errors.

    Raised when communication with the voice service fails or returns an error.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        endpoint: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize voice service error.

        Args:
            message: Error message
            status_code: HTTP status code from the service
            response_body: Raw response body
            endpoint: Service endpoint that was called
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if status_code is not None:
            details["status_code"] = status_code
        if response_body is not None:
            details["response_body"] = response_body[:500]  # Truncate long responses
        if endpoint is not None:
            details["endpoint"] = endpoint

        super().__init__(message, details=details, **kwargs)
        self.status_code = status_code
        self.response_body = response_body
        self.endpoint = endpoint

    @property
    def is_auth_error(self) -> bool:
        """Check if this is an authentication error."""
        return self.status_code in (401, 403)

    @property
    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and self.status_code >= 500


class RetryableError(ChessWireError):
    """
    Base for errors that can be retried.

    Used to mark transient errors that may succeed on retry.
    """

    def __init__(
        self,
        message: str,
        *,
        retry_after: Optional[int] = None,
        max_retries: int = 3,
        **kwargs: Any,
    ) -> None:
        """
        Initialize retryable error.

        Args:
            message: Error message
            retry_after: Suggested wait time in seconds before retry
            max_retries: Maximum number of retries recommended
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        if retry_after is not None:
            details["retry_after"] = retry_after
        details["max_retries"] = max_retries

        super().__init__(message, details=details, **kwargs)
        self.retry_after = retry_after
        self.max_retries = max_retries


class RateLimitError(RetryableError):
    """
    Exception for rate limit errors.

    Raised when a collaborating service rejects us for exceeding its rate.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        service: str = "unknown",
        **kwargs: Any,
    ) -> None:
        """
        Initialize rate limit error.

        Args:
            message: Error message
            service: Service that rate limited us (voice, engine)
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", {})
        details["service"] = service

        super().__init__(message, details=details, **kwargs)
        self.service = service
