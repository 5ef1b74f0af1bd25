"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UpstreamError(DomainException):
    """Could not obtain a usable response from the upstream billing API"""

    def __init__(self, message: str, endpoint: str = ""):
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(UpstreamError):
    """Network failure or timeout talking to the upstream API"""

    pass


class UpstreamHTTPError(UpstreamError):
    """Upstream API answered with a non-200 HTTP status"""

    def __init__(self, message: str, endpoint: str = "", status_code: int = 0, body: str = ""):
        super().__init__(message, endpoint)
        self.status_code = status_code
        self.body = body


class DecodeError(UpstreamError):
    """Upstream response body could not be decoded"""

    pass


class RetriesExhaustedError(UpstreamError):
    """All configured attempts failed; wraps the last observed error"""

    def __init__(self, endpoint: str, attempts: int, last_error: UpstreamError):
        super().__init__(
            f"Upstream {endpoint} failed after {attempts} attempt(s): {last_error}",
            endpoint,
        )
        self.attempts = attempts
        self.last_error = last_error


class CacheBackendError(DomainException):
    """Cache store is unavailable or returned an error"""

    pass


class CacheKeyNotFoundError(CacheBackendError):
    """Requested key is not present (or already expired) in the cache store"""

    pass


class InvalidRequestError(DomainException):
    """Inbound request is missing fields or has malformed values"""

    def __init__(self, message: str, code: str = "INVALID_REQUEST"):
        super().__init__(message)
        self.code = code
