"""
pushbatch

Batched Firebase Cloud Messaging client.
Up to 500 messages are packed into one multipart/mixed HTTP request, and the
multipart response is decoded into one outcome per message, in input order.
"""

__version__ = "0.1.0"

from pushbatch.core.client import PushClient
from pushbatch.core.message import Message, MulticastMessage, Notification
from pushbatch.core.result import BatchResult, SendFailure, SendSuccess
from pushbatch.errors import (
    AuthError,
    EncodingError,
    HttpError,
    InvalidArgumentError,
    ProtocolError,
    PushBatchError,
    TransportError,
)

__all__ = [
    "PushClient",
    "Message",
    "MulticastMessage",
    "Notification",
    "BatchResult",
    "SendSuccess",
    "SendFailure",
    "PushBatchError",
    "InvalidArgumentError",
    "AuthError",
    "EncodingError",
    "TransportError",
    "HttpError",
    "ProtocolError",
]
