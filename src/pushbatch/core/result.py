"""
Send outcomes.

Each message in a batch yields exactly one outcome: a SendSuccess or a
SendFailure. BatchResult keeps them in input order.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional, Union


FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"


@dataclass(frozen=True)
class SendSuccess:
    """A message accepted by the service."""
    message_id: str
    name: str = ""

    success = True

    @classmethod
    def from_name(cls, name: str) -> "SendSuccess":
        """Build from a resource name such as projects/p/messages/123."""
        return cls(message_id=name.rsplit("/", 1)[-1], name=name)

    def to_dict(self) -> dict:
        return {"success": True, "message_id": self.message_id, "name": self.name}


@dataclass(frozen=True)
class SendFailure:
    """A message rejected by the service with an embedded non-200 status."""
    status_code: int
    body: str
    error_code: Optional[str] = None

    success = False

    @classmethod
    def from_response(cls, status_code: int, body: str) -> "SendFailure":
        return cls(
            status_code=status_code,
            body=body,
            error_code=extract_error_code(body),
        )

    def to_dict(self) -> dict:
        return {
            "success": False,
            "status_code": self.status_code,
            "error_code": self.error_code,
            "body": self.body,
        }


Outcome = Union[SendSuccess, SendFailure]


def extract_error_code(body: str) -> Optional[str]:
    """
    Pull the FCM error code out of a Google API error body.

    Returns None when the body is not JSON or carries no FCM error detail.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        return None

    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None

    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("@type") == FCM_ERROR_TYPE:
            return detail.get("errorCode")

    status = error.get("status")
    return status if isinstance(status, str) else None


@dataclass
class BatchResult:
    """
    Result of one batch call.

    Counts are derived from the outcomes, so
    success_count + failure_count == len(outcomes) always holds.
    """

    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failure_count(self) -> int:
        return len(self.outcomes) - self.success_count

    @property
    def failures(self) -> List[SendFailure]:
        """Failed outcomes, in input order."""
        return [outcome for outcome in self.outcomes if not outcome.success]

    def __len__(self) -> int:
        return len(self.outcomes)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "responses": [outcome.to_dict() for outcome in self.outcomes],
        }
