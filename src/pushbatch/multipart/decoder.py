"""
Multipart response decoder.

Splits the service's multipart/mixed response into its parts, reads each
part as an embedded HTTP/1.1 response and maps it to a send outcome.

Outcomes are matched to requests by position. The service is assumed to
answer parts in request order; Content-ID values are only checked and
logged, never used to reorder.
"""

import json
from email import errors as email_errors
from email.message import Message
from email.parser import BytesParser
from typing import Iterator, List, Optional, Tuple

import h11
import structlog

from pushbatch.core.result import BatchResult, Outcome, SendFailure, SendSuccess
from pushbatch.errors import ProtocolError

logger = structlog.get_logger(__name__)


def parse_boundary(content_type: Optional[str]) -> str:
    """
    Extract the boundary parameter from a multipart Content-Type value.

    Raises:
        ProtocolError: If the media type is not multipart or has no boundary
    """
    header = Message()
    header["Content-Type"] = content_type or ""

    boundary = header.get_boundary()
    if header.get_content_maintype() != "multipart" or not boundary:
        raise ProtocolError("malformed content-type")
    return boundary


def iter_parts(content_type: str, body: bytes) -> Iterator[Message]:
    """
    Iterate the parts of a multipart body in order.

    Raises:
        ProtocolError: If the body does not open or close the boundary
    """
    boundary = parse_boundary(content_type)
    header = f'Content-Type: multipart/mixed; boundary="{boundary}"\r\n\r\n'.encode("latin-1")
    message = BytesParser().parsebytes(header + body)

    if not message.is_multipart():
        raise ProtocolError(f"multipart boundary {boundary!r} not found in response body")
    for defect in message.defects:
        if isinstance(defect, email_errors.CloseBoundaryNotFoundDefect):
            raise ProtocolError("multipart response ended before the closing boundary")

    yield from message.get_payload()


def parse_embedded_response(payload: bytes) -> Tuple[int, bytes]:
    """
    Parse a raw HTTP/1.1 response.

    Returns:
        Tuple of (status code, body bytes)

    Raises:
        ProtocolError: If the payload is not a complete HTTP response
    """
    conn = h11.Connection(our_role=h11.CLIENT)
    conn.receive_data(payload)
    conn.receive_data(b"")

    status_code = None
    chunks = []
    try:
        while True:
            event = conn.next_event()
            if isinstance(event, h11.Response):
                status_code = event.status_code
            elif isinstance(event, h11.Data):
                chunks.append(bytes(event.data))
            elif isinstance(event, h11.EndOfMessage):
                break
            elif isinstance(event, h11.ConnectionClosed) or event is h11.NEED_DATA:
                raise ProtocolError("embedded response is incomplete")
    except h11.RemoteProtocolError as e:
        raise ProtocolError(f"error parsing multipart body: {e}") from e

    if status_code is None:
        raise ProtocolError("embedded response has no status line")
    return status_code, b"".join(chunks)


def to_outcome(status_code: int, body: bytes) -> Outcome:
    """
    Map an embedded response to a send outcome.

    Raises:
        ProtocolError: If a 200 response does not carry a message name
    """
    if status_code != 200:
        return SendFailure.from_response(status_code, body.decode("utf-8", errors="replace"))

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ProtocolError(f"invalid JSON in successful part: {e}") from e

    name = payload.get("name") if isinstance(payload, dict) else None
    if not isinstance(name, str):
        raise ProtocolError("successful part does not carry a message name")
    return SendSuccess.from_name(name)


def _content_position(part: Message) -> Optional[int]:
    """Position named by a part's Content-ID (response-<n>), if any."""
    content_id = part.get("Content-ID")
    if not content_id:
        return None
    value = content_id.strip().strip("<>")
    if value.startswith("response-"):
        value = value[len("response-"):]
    return int(value) if value.isdigit() else None


def decode_batch_response(content_type: str, body: bytes) -> BatchResult:
    """
    Decode a multipart batch response.

    Args:
        content_type: Content-Type header of the outer response
        body: Raw outer response body

    Returns:
        BatchResult with one outcome per part, in encounter order

    Raises:
        ProtocolError: If any part cannot be trusted
    """
    outcomes: List[Outcome] = []

    for position, part in enumerate(iter_parts(content_type, body), start=1):
        content_position = _content_position(part)
        if content_position is not None and content_position != position:
            logger.warning(
                "content_id_out_of_order",
                position=position,
                content_id=part.get("Content-ID"),
            )

        payload = part.get_payload(decode=True) or b""
        status_code, part_body = parse_embedded_response(payload)
        outcomes.append(to_outcome(status_code, part_body))

    result = BatchResult(outcomes=outcomes)
    logger.debug(
        "batch_response_decoded",
        parts=len(outcomes),
        success_count=result.success_count,
        failure_count=result.failure_count,
    )
    return result
