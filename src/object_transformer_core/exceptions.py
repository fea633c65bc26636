"""Standardized exceptions for the object transformer core module.

Every failure raised by the core carries a human-readable message and a
stable error code. Fetch, decode and write failures are internal: the
handler logs them and surfaces a single :class:`ProcessingError` to the
invoking platform.
"""

PROCESSING_ERROR_MESSAGE = "Error processing file"


class ObjectTransformerError(Exception):
    """Base exception for all object transformer errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize the error with a message and optional error code.

        Args:
            message: Human-readable error message.
            error_code: Optional error code for programmatic handling.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(ObjectTransformerError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, component: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue.
            component: Optional component name where the error occurred.
        """
        super().__init__(message, "CONFIG_ERROR")
        self.component = component


class MalformedEventError(ObjectTransformerError):
    """Raised when a storage event notification does not have the expected shape."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize malformed event error.

        Args:
            message: Error message describing the validation failure.
            field: Optional path of the field that failed validation.
        """
        super().__init__(message, "MALFORMED_EVENT")
        self.field = field


class FetchError(ObjectTransformerError):
    """Raised when the source object cannot be read."""

    def __init__(self, message: str, container: str, key: str) -> None:
        super().__init__(message, "FETCH_ERROR")
        self.container = container
        self.key = key


class DecodeError(ObjectTransformerError):
    """Raised when an object payload is not valid UTF-8 text."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message, "DECODE_ERROR")
        self.key = key


class WriteError(ObjectTransformerError):
    """Raised when the destination store rejects a write."""

    def __init__(self, message: str, container: str, key: str) -> None:
        super().__init__(message, "WRITE_ERROR")
        self.container = container
        self.key = key


class ProcessingError(ObjectTransformerError):
    """Generic failure surfaced to the invoking platform.

    The message is fixed; the original cause is only available through the
    log stream and ``__cause__``.
    """

    def __init__(self) -> None:
        super().__init__(PROCESSING_ERROR_MESSAGE, "PROCESSING_ERROR")
