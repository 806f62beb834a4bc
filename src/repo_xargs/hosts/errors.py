"""Errors raised by remote host implementations."""


class HostAPIError(Exception):
    """Base exception for remote host API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class HostRateLimitError(HostAPIError):
    """Raised when the host API rate limit is exceeded."""

    pass


class HostNotFoundError(HostAPIError):
    """Raised when requested resource is not found."""

    pass
