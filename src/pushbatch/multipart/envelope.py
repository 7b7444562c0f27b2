"""
Multipart envelope builder.

Packs encoded parts into a single multipart/mixed body. Content-Id values
are 1-based and follow input order; the service answers in the same order,
which is the only way to pair a response part with its request.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import structlog

from pushbatch.config import MULTIPART_BOUNDARY
from pushbatch.errors import EncodingError
from pushbatch.multipart.part import BatchItem, encode_item

logger = structlog.get_logger(__name__)

CRLF = b"\r\n"


@dataclass(frozen=True)
class Envelope:
    """An ordered set of batch items framed with a fixed boundary."""

    items: Tuple[BatchItem, ...]
    boundary: str = MULTIPART_BOUNDARY

    @property
    def content_type(self) -> str:
        return f"multipart/mixed; boundary={self.boundary}"

    @property
    def delimiter(self) -> bytes:
        return b"--" + self.boundary.encode("ascii")

    def part_headers(self, index: int, payload: bytes) -> List[Tuple[str, str]]:
        """MIME headers for the part at a 0-based index."""
        return [
            ("Content-Id", str(index + 1)),
            ("Content-Length", str(len(payload))),
            ("Content-Transfer-Encoding", "binary"),
            ("Content-Type", "application/http"),
        ]

    def to_bytes(self) -> bytes:
        """
        Render the envelope body.

        Raises:
            EncodingError: If a part cannot be encoded, with the part's index
        """
        chunks = []
        for index, item in enumerate(self.items):
            try:
                payload = encode_item(item)
            except EncodingError as e:
                raise EncodingError(f"part {index}: {e}", index=index) from e

            if self.delimiter in payload:
                raise EncodingError(
                    f"part {index}: payload contains the multipart boundary",
                    index=index,
                )

            chunks.append(CRLF + self.delimiter + CRLF if chunks else self.delimiter + CRLF)
            for name, value in self.part_headers(index, payload):
                chunks.append(f"{name}: {value}".encode("ascii") + CRLF)
            chunks.append(CRLF)
            chunks.append(payload)

        chunks.append(CRLF + self.delimiter + b"--" + CRLF)
        return b"".join(chunks)


def build_envelope(items: Iterable[BatchItem]) -> Tuple[bytes, str]:
    """
    Build a multipart/mixed body from batch items.

    Args:
        items: Batch items in send order

    Returns:
        Tuple of (body bytes, Content-Type header value)
    """
    envelope = Envelope(items=tuple(items))
    body = envelope.to_bytes()

    logger.debug(
        "envelope_built",
        parts=len(envelope.items),
        bytes=len(body),
    )
    return body, envelope.content_type
