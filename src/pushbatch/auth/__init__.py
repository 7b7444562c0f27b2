"""
Authorization layer.

Supplies bearer tokens for batch requests.
"""

from pushbatch.auth.interface import StaticTokenProvider, TokenProvider
from pushbatch.auth.service_account import ServiceAccountTokenProvider

__all__ = [
    "TokenProvider",
    "StaticTokenProvider",
    "ServiceAccountTokenProvider",
]
