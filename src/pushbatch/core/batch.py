"""
Batch call model.

Tracks one send_batch call through its phases. A call is a single linear
pass; failed calls are never resumed.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchPhase(str, Enum):
    """Phase of a batch call."""
    VALIDATING = "validating"                 # Checking batch size and messages
    ASSEMBLING = "assembling"                 # Encoding parts and fetching a token
    AWAITING_RESPONSE = "awaiting_response"   # Outer request in flight
    DECODING = "decoding"                     # Parsing the multipart response
    DONE = "done"                             # BatchResult produced
    FAILED = "failed"                         # Call raised; no BatchResult


@dataclass
class BatchCall:
    """
    One batch send, from validation to result.

    Attributes:
        size: Number of messages in the batch
        dry_run: Whether the service only validates the messages
        batch_id: Identifier used to correlate log lines
        phase: Current phase of the call
        error_message: Error that ended the call, if it failed
    """

    size: int
    dry_run: bool = False
    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    phase: BatchPhase = BatchPhase.VALIDATING

    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    status_code: Optional[int] = None
    success_count: Optional[int] = None
    failure_count: Optional[int] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.phase, str):
            self.phase = BatchPhase(self.phase)

    def mark_assembling(self) -> None:
        self.phase = BatchPhase.ASSEMBLING

    def mark_awaiting_response(self) -> None:
        self.phase = BatchPhase.AWAITING_RESPONSE

    def mark_decoding(self, status_code: int) -> None:
        self.phase = BatchPhase.DECODING
        self.status_code = status_code

    def mark_done(self, success_count: int, failure_count: int) -> None:
        """Mark the call as finished with a result."""
        self.phase = BatchPhase.DONE
        self.success_count = success_count
        self.failure_count = failure_count
        self.finished_at = _utcnow()

    def mark_failed(self, error: str) -> None:
        """Mark the call as failed with error message."""
        self.phase = BatchPhase.FAILED
        self.error_message = error
        self.finished_at = _utcnow()

    @property
    def is_finished(self) -> bool:
        return self.phase in (BatchPhase.DONE, BatchPhase.FAILED)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "batch_id": self.batch_id,
            "size": self.size,
            "dry_run": self.dry_run,
            "phase": self.phase.value,
            "status_code": self.status_code,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "error_message": self.error_message,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }

    def __repr__(self) -> str:
        return f"BatchCall(id={self.batch_id[:8]}..., phase={self.phase.value}, size={self.size})"
