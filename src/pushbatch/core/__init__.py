"""
Core client components.

This module contains the message model, send outcomes, batch assembly and
the client that orchestrates batched sends.
"""

from pushbatch.core.message import (
    DefaultMessageValidator,
    Message,
    MessageValidationError,
    MessageValidator,
    MulticastMessage,
    Notification,
)
from pushbatch.core.result import BatchResult, Outcome, SendFailure, SendSuccess
from pushbatch.core.batch import BatchCall, BatchPhase
from pushbatch.core.assembler import BatchRequestAssembler
from pushbatch.core.client import PushClient

__all__ = [
    "Message",
    "MulticastMessage",
    "Notification",
    "MessageValidator",
    "DefaultMessageValidator",
    "MessageValidationError",
    "BatchResult",
    "Outcome",
    "SendSuccess",
    "SendFailure",
    "BatchCall",
    "BatchPhase",
    "BatchRequestAssembler",
    "PushClient",
]
