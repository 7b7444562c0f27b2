"""
Service account token provider.

Mints FCM access tokens from a Google service account JSON key.
"""

import asyncio
from typing import List, Optional

import google.auth.exceptions
import structlog
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from pushbatch.auth.interface import TokenProvider
from pushbatch.config import FCM_SCOPES
from pushbatch.errors import AuthError

logger = structlog.get_logger(__name__)


class ServiceAccountTokenProvider(TokenProvider):
    """
    Token provider backed by google-auth service account credentials.

    The credentials file is read lazily on first use. Tokens are cached by
    the credentials object and refreshed in a worker thread once expired.
    """

    def __init__(
        self,
        credentials_location: str,
        scopes: Optional[List[str]] = None,
    ):
        """
        Initialize the provider.

        Args:
            credentials_location: Path to the service account JSON file
            scopes: OAuth2 scopes to request. Defaults to the FCM scope.
        """
        self.credentials_location = credentials_location
        self.scopes = scopes or list(FCM_SCOPES)
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = asyncio.Lock()

    def _load_credentials(self) -> service_account.Credentials:
        try:
            return service_account.Credentials.from_service_account_file(
                self.credentials_location,
                scopes=self.scopes,
            )
        except (OSError, ValueError) as e:
            raise AuthError(
                f"Failed to load credentials from {self.credentials_location}: {e}"
            ) from e

    async def get_token(self) -> str:
        """Get a valid access token, refreshing it if needed."""
        async with self._lock:
            if self._credentials is None:
                self._credentials = self._load_credentials()

            if not self._credentials.valid:
                try:
                    await asyncio.to_thread(self._credentials.refresh, Request())
                except google.auth.exceptions.GoogleAuthError as e:
                    logger.error("token_refresh_failed", error=str(e))
                    raise AuthError(f"Failed to refresh access token: {e}") from e
                logger.debug("token_refreshed", expiry=str(self._credentials.expiry))

            return self._credentials.token
