"""
Pytest configuration and shared fixtures for the test suite.
"""

import json
from email.message import Message as MimePart
from email.parser import BytesParser
from http import HTTPStatus
from typing import Callable, List, Optional, Sequence, Set, Tuple

import h11
import httpx
import pytest
import pytest_asyncio

from pushbatch.auth.interface import StaticTokenProvider, TokenProvider
from pushbatch.config import ClientConfig
from pushbatch.core.client import PushClient
from pushbatch.core.message import Message, Notification
from pushbatch.errors import AuthError


RESPONSE_BOUNDARY = "batch_pMXwc8Zh3kQ"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ClientConfig:
    """Create a test configuration."""
    return ClientConfig(
        project_id="test-project",
        credentials_location="/nonexistent/fcm-credentials.json",
        endpoint="https://fcm.example.test/v1",
        batch_endpoint="https://fcm.example.test/batch",
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_token(index: int = 0) -> str:
    """Generate a deterministic registration token."""
    return f"device-token-{index:04d}"


def make_messages(count: int) -> List[Message]:
    """Create valid token messages in a predictable order."""
    return [
        Message(
            token=generate_test_token(i),
            data={"index": str(i)},
            notification=Notification(title="Hello", body=f"Message {i}"),
        )
        for i in range(count)
    ]


@pytest.fixture
def sample_message() -> Message:
    """Create a sample message."""
    return make_messages(1)[0]


@pytest.fixture
def sample_messages() -> List[Message]:
    """Create multiple sample messages."""
    return make_messages(5)


# ============================================================================
# Multipart Helpers
# ============================================================================

def parse_embedded_request(payload: bytes) -> Tuple[h11.Request, bytes]:
    """Parse a raw HTTP/1.1 request the way a server would."""
    conn = h11.Connection(our_role=h11.SERVER)
    conn.receive_data(payload)

    request = conn.next_event()
    assert isinstance(request, h11.Request)

    body = b""
    while True:
        event = conn.next_event()
        if isinstance(event, h11.Data):
            body += bytes(event.data)
        else:
            assert isinstance(event, h11.EndOfMessage)
            break
    return request, body


def split_batch_request(
    content_type: str,
    body: bytes,
) -> List[Tuple[MimePart, h11.Request, bytes]]:
    """Split a multipart batch request into (MIME part, embedded request, body)."""
    header = f"Content-Type: {content_type}\r\n\r\n".encode("ascii")
    envelope = BytesParser().parsebytes(header + body)
    assert envelope.is_multipart()

    parts = []
    for part in envelope.get_payload():
        request, request_body = parse_embedded_request(part.get_payload(decode=True))
        parts.append((part, request, request_body))
    return parts


def build_batch_response(
    parts: Sequence[Tuple[int, bytes]],
    boundary: str = RESPONSE_BOUNDARY,
) -> bytes:
    """Build a multipart batch response body from (status, body) pairs."""
    chunks = []
    for position, (status_code, body) in enumerate(parts, start=1):
        embedded = (
            f"HTTP/1.1 {status_code} {HTTPStatus(status_code).phrase}\r\n"
            f"Content-Type: application/json; charset=UTF-8\r\n"
            f"Content-Length: {len(body)}\r\n"
            f"\r\n"
        ).encode("ascii") + body
        chunks.append(
            (
                f"--{boundary}\r\n"
                f"Content-Type: application/http\r\n"
                f"Content-ID: response-{position}\r\n"
                f"\r\n"
            ).encode("ascii")
            + embedded
            + b"\r\n"
        )
    chunks.append(f"--{boundary}--\r\n".encode("ascii"))
    return b"".join(chunks)


def fcm_error_body(status_code: int, error_code: str, message: str = "error") -> bytes:
    """Build a Google API error body carrying an FCM error code."""
    return json.dumps({
        "error": {
            "code": status_code,
            "message": message,
            "status": "INVALID_ARGUMENT",
            "details": [
                {
                    "@type": "type.googleapis.com/google.firebase.fcm.v1.FcmError",
                    "errorCode": error_code,
                },
            ],
        },
    }).encode("utf-8")


# ============================================================================
# Fake FCM Service
# ============================================================================

class FakeFCMService:
    """
    In-memory stand-in for the FCM batch endpoint.

    Answers every part with a message name derived from the message's token,
    or with an UNREGISTERED error for tokens listed in rejected_tokens.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.rejected_tokens: Set[str] = set()
        self.outer_status: int = 200
        self.response_factory: Optional[Callable[[httpx.Request], httpx.Response]] = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def parts(self, index: int = -1) -> List[Tuple[MimePart, h11.Request, bytes]]:
        """Parts of a recorded request."""
        request = self.requests[index]
        return split_batch_request(request.headers["Content-Type"], request.content)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.response_factory is not None:
            return self.response_factory(request)

        if self.outer_status != 200:
            return httpx.Response(self.outer_status, text="backend unavailable")

        answers = []
        for _, _, body in split_batch_request(request.headers["Content-Type"], request.content):
            message = json.loads(body)["message"]
            target = message.get("token") or message.get("topic") or "condition"
            if target in self.rejected_tokens:
                answers.append((404, fcm_error_body(404, "UNREGISTERED", "not found")))
            else:
                name = f"projects/test-project/messages/{target}"
                answers.append((200, json.dumps({"name": name}).encode("utf-8")))

        return httpx.Response(
            200,
            headers={"Content-Type": f"multipart/mixed; boundary={RESPONSE_BOUNDARY}"},
            content=build_batch_response(answers),
        )


class FailingTokenProvider(TokenProvider):
    """Token provider that always fails."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        raise self.error


@pytest.fixture
def fake_service() -> FakeFCMService:
    """Create a fake FCM batch endpoint."""
    return FakeFCMService()


@pytest.fixture
def token_provider() -> StaticTokenProvider:
    """Create a static token provider."""
    return StaticTokenProvider("test-access-token")


@pytest_asyncio.fixture
async def push_client(test_config, token_provider, fake_service):
    """Create a client wired to the fake service."""
    http_client = httpx.AsyncClient(transport=fake_service.transport)
    client = PushClient(
        config=test_config,
        token_provider=token_provider,
        http_client=http_client,
    )
    yield client
    await http_client.aclose()


@pytest.fixture
def auth_failure() -> FailingTokenProvider:
    """Create a token provider that raises AuthError."""
    return FailingTokenProvider(AuthError("credentials revoked"))
