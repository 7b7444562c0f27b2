"""
Part encoder.

Turns one logical request into the raw HTTP/1.1 bytes embedded in a
multipart batch part. The request is modelled with httpx and written out
with h11, the same wire layer httpx uses, so each part is byte-for-byte
what an HTTP client would put on a socket.
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import h11
import httpx

from pushbatch.errors import EncodingError


JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


@dataclass(frozen=True)
class BatchItem:
    """
    One logical request carried inside a batch.

    Attributes:
        url: Absolute URL the embedded request targets
        body: JSON-serializable request body
        headers: Extra request headers
        method: HTTP method of the embedded request
    """

    url: str
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)
    method: str = "POST"

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


def encode_body(body: Any) -> bytes:
    """Serialize a request body as compact UTF-8 JSON."""
    try:
        return json.dumps(
            body, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"body is not JSON serializable: {e}") from e


def build_request(item: BatchItem) -> httpx.Request:
    """Model a BatchItem as the httpx request it stands for."""
    headers = httpx.Headers(dict(item.headers))
    headers["Content-Type"] = JSON_CONTENT_TYPE
    # Overrides any client identifier so encoded parts are deterministic
    headers["User-Agent"] = ""

    return httpx.Request(
        item.method,
        item.url,
        headers=headers,
        content=encode_body(item.body),
    )


def serialize_request(request: httpx.Request) -> bytes:
    """
    Write an httpx request as raw HTTP/1.1 bytes.

    Headers with an empty value are not written.
    """
    headers = [(name, value) for name, value in request.headers.raw if value]

    try:
        conn = h11.Connection(our_role=h11.CLIENT)
        chunks = [
            conn.send(h11.Request(
                method=request.method,
                target=request.url.raw_path,
                headers=headers,
            )),
        ]
        if request.content:
            chunks.append(conn.send(h11.Data(data=request.content)))
        chunks.append(conn.send(h11.EndOfMessage()))
    except h11.LocalProtocolError as e:
        raise EncodingError(f"cannot serialize request to {request.url}: {e}") from e

    return b"".join(chunks)


def encode_item(item: BatchItem) -> bytes:
    """
    Encode a BatchItem as a raw HTTP/1.1 request.

    Raises:
        EncodingError: If the body cannot be represented as JSON
    """
    return serialize_request(build_request(item))
