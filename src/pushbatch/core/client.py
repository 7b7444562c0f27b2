"""
Push client.

Entry point for batched sends. Coordinates the assembler, the HTTP
transport and the multipart response decoder.
"""

from typing import Optional, Sequence

import httpx
import structlog

from pushbatch.auth.interface import TokenProvider
from pushbatch.auth.service_account import ServiceAccountTokenProvider
from pushbatch.config import ClientConfig, get_config
from pushbatch.core.assembler import BatchRequestAssembler
from pushbatch.core.batch import BatchCall
from pushbatch.core.dump import dump_request, dump_response
from pushbatch.core.message import Message, MessageValidator, MulticastMessage
from pushbatch.core.result import BatchResult
from pushbatch.errors import HttpError, InvalidArgumentError, ProtocolError, TransportError
from pushbatch.multipart.decoder import decode_batch_response

logger = structlog.get_logger(__name__)


class PushClient:
    """
    Batched FCM client.

    An error raised from a send method means none of the messages were
    sent. Per-message failures are reported inside the returned
    BatchResult instead.

    Usage:
        ```python
        async with PushClient(config) as client:
            result = await client.send_all(messages)
            print(result.success_count, result.failure_count)
        ```
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        token_provider: Optional[TokenProvider] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        validator: Optional[MessageValidator] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration. Uses global config if not provided.
            token_provider: Bearer token source. Defaults to the configured service account.
            http_client: Shared HTTP client. Created (and owned) if not provided.
            validator: Message validator used before assembling a batch
        """
        self.config = config or get_config()
        self.token_provider = token_provider or ServiceAccountTokenProvider(
            self.config.credentials_location
        )

        self.assembler = BatchRequestAssembler(
            send_endpoint=self.config.send_endpoint,
            batch_endpoint=self.config.batch_endpoint,
            token_provider=self.token_provider,
            validator=validator,
        )

        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self.config.request_timeout_seconds,
        )

    async def __aenter__(self) -> "PushClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def send_all(self, messages: Sequence[Message]) -> BatchResult:
        """
        Send up to 500 messages as a single batch request.

        Outcomes in the result follow the order of the input messages.
        """
        return await self.send_batch(messages, dry_run=False)

    async def send_all_dry_run(self, messages: Sequence[Message]) -> BatchResult:
        """Validate up to 500 messages with the service without delivering them."""
        return await self.send_batch(messages, dry_run=True)

    async def send_multicast(self, multicast: MulticastMessage) -> BatchResult:
        """Send one message to every token of a multicast message."""
        return await self.send_all(_to_messages(multicast))

    async def send_multicast_dry_run(self, multicast: MulticastMessage) -> BatchResult:
        """Validate a multicast message for every token without delivering it."""
        return await self.send_all_dry_run(_to_messages(multicast))

    async def send_batch(
        self,
        messages: Sequence[Message],
        dry_run: bool = False,
    ) -> BatchResult:
        """
        Send a batch of messages.

        Args:
            messages: 1..500 messages, in send order
            dry_run: Ask the service to validate without delivering

        Returns:
            BatchResult with one outcome per message, in input order

        Raises:
            InvalidArgumentError: If the batch or a message is rejected
            EncodingError: If a message cannot be serialized
            AuthError: If no token can be obtained
            TransportError: If the HTTP exchange fails
            HttpError: If the batch request returns a non-2xx status
            ProtocolError: If the multipart response cannot be decoded
        """
        call = BatchCall(size=len(messages or ()), dry_run=dry_run)
        log = logger.bind(batch_id=call.batch_id, size=call.size, dry_run=dry_run)

        try:
            self.assembler.validate(messages)

            call.mark_assembling()
            request = await self.assembler.build_request(messages, dry_run)

            call.mark_awaiting_response()
            response = await self._execute(request)

            call.mark_decoding(response.status_code)
            result = decode_batch_response(
                response.headers.get("Content-Type", ""),
                response.content,
            )
            if len(result.outcomes) != len(messages):
                raise ProtocolError(
                    f"expected {len(messages)} response parts, got {len(result.outcomes)}"
                )
        except Exception as e:
            call.mark_failed(str(e))
            log.error("batch_send_failed", phase=call.phase.value, error=str(e))
            raise

        call.mark_done(result.success_count, result.failure_count)
        log.info(
            "batch_sent",
            success_count=result.success_count,
            failure_count=result.failure_count,
            duration_seconds=call.duration_seconds,
        )
        return result

    async def _execute(self, request: httpx.Request) -> httpx.Response:
        """Perform the outer exchange and reject non-2xx statuses."""
        try:
            response = await self._http_client.send(request)
        except httpx.RequestError as e:
            raise TransportError(f"Batch request failed: {e}") from e

        if not response.is_success:
            logger.error(
                "batch_request_rejected",
                status=response.status_code,
                error=response.text[:200],
            )
            raise HttpError(
                status_code=response.status_code,
                request_dump=dump_request(request),
                response_dump=dump_response(response),
                reason=response.reason_phrase,
            )

        return response


def _to_messages(multicast: MulticastMessage) -> list:
    if multicast is None:
        raise InvalidArgumentError("message must not be None")
    return multicast.to_messages()
