"""
Batch request assembler.

Validates a list of messages and turns it into the single outer HTTP
request that carries all of them.
"""

from typing import List, Optional, Sequence

import httpx
import structlog

from pushbatch.auth.interface import TokenProvider
from pushbatch.config import API_FORMAT_VERSION, API_FORMAT_VERSION_HEADER, MAX_BATCH_SIZE
from pushbatch.core.message import (
    DefaultMessageValidator,
    Message,
    MessageValidationError,
    MessageValidator,
)
from pushbatch.errors import AuthError, InvalidArgumentError
from pushbatch.multipart.envelope import build_envelope
from pushbatch.multipart.part import BatchItem

logger = structlog.get_logger(__name__)


def check_batch_size(messages: Sequence[Message]) -> None:
    """
    Enforce 1 <= len(messages) <= MAX_BATCH_SIZE.

    Raises:
        InvalidArgumentError: If the batch is empty or too large
    """
    if not messages:
        raise InvalidArgumentError("messages must not be empty")
    if len(messages) > MAX_BATCH_SIZE:
        raise InvalidArgumentError(
            f"batch too large: messages must not contain more than "
            f"{MAX_BATCH_SIZE} elements, got {len(messages)}"
        )


class BatchRequestAssembler:
    """
    Builds authorized multipart batch requests.

    Validation is all-or-nothing: one invalid message rejects the whole
    batch before any token is fetched or request is built.
    """

    def __init__(
        self,
        send_endpoint: str,
        batch_endpoint: str,
        token_provider: TokenProvider,
        validator: Optional[MessageValidator] = None,
    ):
        """
        Initialize the assembler.

        Args:
            send_endpoint: Per-message send URL targeted by every part
            batch_endpoint: URL the outer request is posted to
            token_provider: Source of bearer tokens
            validator: Message validator. Uses DefaultMessageValidator if not provided.
        """
        self.send_endpoint = send_endpoint
        self.batch_endpoint = batch_endpoint
        self.token_provider = token_provider
        self.validator = validator or DefaultMessageValidator()

    def validate(self, messages: Sequence[Message]) -> None:
        """
        Check batch size and every message, in order.

        Raises:
            InvalidArgumentError: Naming the index of the first invalid message
        """
        check_batch_size(messages)

        for index, message in enumerate(messages):
            try:
                self.validator.validate(message)
            except MessageValidationError as e:
                raise InvalidArgumentError(
                    f"invalid message at index {index}: {e}",
                    index=index,
                ) from e

    def build_items(self, messages: Sequence[Message], dry_run: bool) -> List[BatchItem]:
        """Wrap each message as an embedded send request."""
        headers = {API_FORMAT_VERSION_HEADER: API_FORMAT_VERSION}
        return [
            BatchItem(
                url=self.send_endpoint,
                headers=headers,
                body={"message": message.to_dict(), "validate_only": dry_run},
            )
            for message in messages
        ]

    async def get_token(self) -> str:
        """Fetch a bearer token, normalizing failures to AuthError."""
        try:
            token = await self.token_provider.get_token()
        except AuthError:
            raise
        except Exception as e:
            raise AuthError(f"Failed to obtain access token: {e}") from e

        if not token:
            raise AuthError("Token provider returned an empty token")
        return token

    async def assemble(self, messages: Sequence[Message], dry_run: bool = False) -> httpx.Request:
        """
        Validate messages and build the outer batch request.

        Args:
            messages: 1..MAX_BATCH_SIZE messages, in send order
            dry_run: Ask the service to validate without delivering

        Returns:
            The POST request to the batch endpoint

        Raises:
            InvalidArgumentError: If the batch or a message is rejected
            EncodingError: If a message cannot be serialized
            AuthError: If no token can be obtained
        """
        self.validate(messages)
        return await self.build_request(messages, dry_run)

    async def build_request(self, messages: Sequence[Message], dry_run: bool) -> httpx.Request:
        """Build the outer batch request for already validated messages."""
        body, content_type = build_envelope(self.build_items(messages, dry_run))
        token = await self.get_token()

        logger.debug(
            "batch_request_assembled",
            size=len(messages),
            dry_run=dry_run,
            bytes=len(body),
        )

        return httpx.Request(
            "POST",
            self.batch_endpoint,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": content_type,
            },
            content=body,
        )
