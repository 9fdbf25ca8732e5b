"""
Granite Client Exceptions
"""


class GraniteError(Exception):
    """Base exception for the Granite client."""
    
    def __init__(self, message: str, status_code: int = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}
    
    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class ConfigurationError(GraniteError):
    """Raised for invalid local configuration. Never retryable."""
    pass


class UnsupportedDriverError(ConfigurationError):
    """Raised when no adapter exists for a driver identifier."""
    pass


class UnsupportedProviderError(ConfigurationError):
    """Raised when a storage provider identifier is unknown."""
    pass


class InvalidConnectionError(ConfigurationError):
    """Raised when a connection record is not exactly one of SQL or storage."""
    pass


class InvalidPrefixError(ConfigurationError, ValueError):
    """Raised when a storage prefix would address a whole container."""
    pass



class CapabilityNotSupportedError(GraniteError):
    """Raised when an operation is requested that the driver cannot perform."""
    pass


class BackendError(GraniteError):
    """Raised when the backend answers with a non-2xx status."""
    pass


class NotFoundError(BackendError):
    """Raised when the backend answers 404 (unknown connection, object, ...)."""
    pass


class ConnectionError(GraniteError):
    """Raised when connection to the backend fails."""
    pass


class TimeoutError(GraniteError):
    """Raised when a request times out."""
    pass


class OperationCancelledError(GraniteError):
    """Raised when a cancellation token fires at a suspension point."""
    pass
