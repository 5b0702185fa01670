"""Custom exception hierarchy for the toolkit."""

from collections.abc import Mapping
from enum import Enum


class WikibaseToolkitError(Exception):
    """Base exception for all toolkit errors."""

    def __init__(self, message: str, is_retryable: bool = False) -> None:
        """Initialize exception.

        Args:
            message: Error message
            is_retryable: Whether the operation can be retried
        """
        super().__init__(message)
        self.message = message
        self.is_retryable = is_retryable


class ConfigurationError(WikibaseToolkitError):
    """Configuration or environment setup error."""

    pass


class TransportError(WikibaseToolkitError):
    """HTTP transport failure or non-2xx response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize transport error.

        Args:
            message: Error message
            status_code: HTTP status, None when no response was received
            headers: Response headers, if any
        """
        retryable = status_code is None or status_code >= 500
        super().__init__(message, is_retryable=retryable)
        self.status_code = status_code
        self.headers = dict(headers or {})


class ParseError(WikibaseToolkitError):
    """Response body could not be understood as an API envelope."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class AuthError(WikibaseToolkitError):
    """Login was rejected or could not be completed."""

    pass


class NoLoginError(WikibaseToolkitError):
    """Write operation attempted on a connection that is not logged in."""

    pass


class DeserializationErrorKind(str, Enum):
    """Why an entity document could not be read."""

    PARSE = "parse"
    MAPPING = "mapping"
    IO = "io"


class DeserializationError(WikibaseToolkitError):
    """Entity document deserialization error."""

    def __init__(self, message: str, kind: DeserializationErrorKind) -> None:
        super().__init__(message)
        self.kind = kind
