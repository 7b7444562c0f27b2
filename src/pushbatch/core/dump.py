"""Raw request/response dumps attached to HttpError for debugging."""

import re

import httpx

from pushbatch.errors import EncodingError
from pushbatch.multipart.part import serialize_request

_BEARER = re.compile(rb"(Authorization: Bearer )\S+", re.IGNORECASE)


def dump_request(request: httpx.Request) -> str:
    """Render a request as it went on the wire, with the bearer token redacted."""
    try:
        raw = serialize_request(request)
    except EncodingError as e:
        return f"{request.method} {request.url} (unprintable: {e})"
    raw = _BEARER.sub(rb"\1<redacted>", raw)
    return raw.decode("utf-8", errors="replace")


def dump_response(response: httpx.Response) -> str:
    """Render a response as status line, headers and body."""
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip()]
    encoding = response.headers.encoding
    lines.extend(
        f"{name.decode(encoding)}: {value.decode(encoding)}"
        for name, value in response.headers.raw
    )
    return "\r\n".join(lines) + "\r\n\r\n" + response.text
