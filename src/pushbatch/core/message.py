"""
Message model.

Represents an outbound push message and the checks applied to it before
it is packed into a batch.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pushbatch.config import MAX_BATCH_SIZE
from pushbatch.errors import InvalidArgumentError


TOPIC_PATTERN = re.compile(r"^(/topics/)?[a-zA-Z0-9\-_.~%]+$")
TOPIC_PREFIX = "/topics/"


class MessageValidationError(ValueError):
    """Raised by a validator when a message is not well formed."""

    def __init__(self, field_name: str, reason: str):
        super().__init__(f"{field_name}: {reason}")
        self.field_name = field_name
        self.reason = reason


@dataclass
class Notification:
    """Basic notification template shared by all platforms."""
    title: Optional[str] = None
    body: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to the wire representation, dropping unset fields."""
        return {
            key: value
            for key, value in (
                ("title", self.title),
                ("body", self.body),
                ("image", self.image),
            )
            if value is not None
        }


@dataclass
class Message:
    """
    A single message addressed to exactly one target.

    The target is a registration token, a topic name or a topic condition.
    Platform specific blocks (android, webpush, apns) are passed through
    unchanged as mappings.

    Attributes:
        token: Registration token of the target device
        topic: Topic name, with or without the /topics/ prefix
        condition: Topic condition such as "'a' in topics && 'b' in topics"
        data: Arbitrary string key/value payload
        notification: Notification shown on all platforms
        android: Android specific options
        webpush: Webpush specific options
        apns: APNs specific options
        fcm_options: Platform independent FCM options
    """

    token: Optional[str] = None
    topic: Optional[str] = None
    condition: Optional[str] = None

    data: Dict[str, str] = field(default_factory=dict)
    notification: Optional[Notification] = None

    android: Optional[Dict[str, Any]] = None
    webpush: Optional[Dict[str, Any]] = None
    apns: Optional[Dict[str, Any]] = None
    fcm_options: Optional[Dict[str, Any]] = None

    @property
    def targets(self) -> List[str]:
        """Names of the target fields that are set."""
        return [
            name
            for name, value in (
                ("token", self.token),
                ("topic", self.topic),
                ("condition", self.condition),
            )
            if value
        ]

    def to_dict(self) -> dict:
        """Convert to the FCM v1 message representation."""
        result: Dict[str, Any] = {}

        if self.data:
            result["data"] = dict(self.data)
        if self.notification is not None:
            result["notification"] = self.notification.to_dict()
        if self.android is not None:
            result["android"] = self.android
        if self.webpush is not None:
            result["webpush"] = self.webpush
        if self.apns is not None:
            result["apns"] = self.apns
        if self.fcm_options is not None:
            result["fcm_options"] = self.fcm_options

        if self.token:
            result["token"] = self.token
        if self.topic:
            topic = self.topic
            if topic.startswith(TOPIC_PREFIX):
                topic = topic[len(TOPIC_PREFIX):]
            result["topic"] = topic
        if self.condition:
            result["condition"] = self.condition

        return result


class MessageValidator(ABC):
    """
    Abstract base class for message validation.

    Implementations raise MessageValidationError describing the first
    problem found and return None for a valid message.
    """

    @abstractmethod
    def validate(self, message: Message) -> None:
        """
        Check a message for well-formedness.

        Args:
            message: The message to check

        Raises:
            MessageValidationError: If the message is invalid
        """
        pass


class DefaultMessageValidator(MessageValidator):
    """Client side checks mirroring what the FCM backend rejects outright."""

    def validate(self, message: Message) -> None:
        if message is None:
            raise MessageValidationError("message", "must not be None")
        if not isinstance(message, Message):
            raise MessageValidationError(
                "message", f"expected a Message, got {type(message).__name__}"
            )

        targets = message.targets
        if len(targets) != 1:
            raise MessageValidationError(
                "target",
                "exactly one of token, topic or condition must be specified",
            )

        if message.topic and not TOPIC_PATTERN.match(message.topic):
            raise MessageValidationError("topic", f"malformed topic name {message.topic!r}")

        if not isinstance(message.data, dict):
            raise MessageValidationError("data", "must be a mapping of strings")
        for key, value in message.data.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise MessageValidationError("data", "keys and values must be strings")

        image = message.notification.image if message.notification else None
        if image and not image.startswith(("http://", "https://")):
            raise MessageValidationError("notification.image", f"invalid image URL {image!r}")


@dataclass
class MulticastMessage:
    """
    One message addressed to many registration tokens.

    A MulticastMessage may contain up to 500 tokens.
    """

    tokens: List[str]
    message: Message = field(default_factory=Message)

    def to_messages(self) -> List[Message]:
        """
        Fan out into one Message per token, in token order.

        Raises:
            InvalidArgumentError: If the token list is empty or too long
        """
        if not self.tokens:
            raise InvalidArgumentError("tokens must not be empty")
        if len(self.tokens) > MAX_BATCH_SIZE:
            raise InvalidArgumentError(
                f"tokens must not contain more than {MAX_BATCH_SIZE} elements"
            )

        template = self.message
        return [
            Message(
                token=token,
                data=dict(template.data or {}),
                notification=template.notification,
                android=template.android,
                webpush=template.webpush,
                apns=template.apns,
                fcm_options=template.fcm_options,
            )
            for token in self.tokens
        ]
