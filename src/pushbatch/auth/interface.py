"""
Abstract interface for bearer token acquisition.

Defines the contract the batch assembler uses to authorize requests.
"""

from abc import ABC, abstractmethod


class TokenProvider(ABC):
    """
    Abstract source of OAuth2 bearer tokens.

    Implementations may cache tokens; get_token must be safe to call from
    concurrent batch sends.
    """

    @abstractmethod
    async def get_token(self) -> str:
        """
        Get a bearer token for the Authorization header.

        Returns:
            The access token string

        Raises:
            AuthError: If no token can be obtained
        """
        pass


class StaticTokenProvider(TokenProvider):
    """Token provider returning a fixed, pre-minted token."""

    def __init__(self, token: str):
        self.token = token

    async def get_token(self) -> str:
        return self.token
