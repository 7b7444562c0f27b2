"""
Error taxonomy for batch sends.

Everything raised by the client derives from PushBatchError. Per-message
delivery failures are not errors; they are reported as SendFailure outcomes
inside a BatchResult.
"""

from typing import Optional


class PushBatchError(Exception):
    """Base class for all client errors."""
    pass


class InvalidArgumentError(PushBatchError, ValueError):
    """Raised when the caller's input is rejected before any network call."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class AuthError(PushBatchError):
    """Raised when a bearer token cannot be obtained."""
    pass


class EncodingError(PushBatchError):
    """Raised when a batch part cannot be serialized."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class TransportError(PushBatchError):
    """Raised when the outer HTTP exchange could not be completed."""
    pass


class ProtocolError(PushBatchError):
    """Raised when the multipart response cannot be trusted."""
    pass


class HttpError(PushBatchError):
    """
    Raised when the batch request itself was rejected.

    None of the messages were sent. The dumps hold the raw outer request
    and response for debugging.
    """

    def __init__(
        self,
        status_code: int,
        request_dump: str,
        response_dump: str,
        reason: str = "",
    ):
        super().__init__(f"{status_code} error: {reason}" if reason else f"{status_code} error")
        self.status_code = status_code
        self.request_dump = request_dump
        self.response_dump = response_dump
