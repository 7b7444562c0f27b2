"""
Configuration management for the push batch client.

Supports configuration via environment variables and .env files.
Protocol constants shared by the envelope builder and the response
decoder are defined here so the framing contract lives in one place.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pushbatch.errors import InvalidArgumentError


# Maximum number of messages packed into one batch request
MAX_BATCH_SIZE = 500

# Boundary used for every outbound multipart/mixed envelope
MULTIPART_BOUNDARY = "__END_OF_PART__"

API_FORMAT_VERSION_HEADER = "X-GOOG-API-FORMAT-VERSION"
API_FORMAT_VERSION = "2"

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]


class ClientConfig(BaseSettings):
    """
    Configuration settings for the push batch client.

    All settings can be configured via environment variables with the PUSHBATCH_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="PUSHBATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Project settings
    project_id: Optional[str] = Field(
        default=None,
        description="Firebase project ID messages are sent on behalf of"
    )
    credentials_location: str = Field(
        default="fcm-credentials.json",
        description="Path to the service account JSON credentials"
    )

    # Endpoint settings
    endpoint: str = Field(
        default="https://fcm.googleapis.com/v1",
        description="Base URL of the FCM v1 API"
    )
    batch_endpoint: str = Field(
        default="https://fcm.googleapis.com/batch",
        description="URL accepting multipart/mixed batch requests"
    )

    # HTTP settings
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to the outer batch HTTP exchange"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("endpoint", "batch_endpoint")
    @classmethod
    def _endpoint_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("endpoint must not be empty")
        return value.rstrip("/")

    @property
    def send_endpoint(self) -> str:
        """Get the per-message send URL for the configured project."""
        if not self.project_id:
            raise InvalidArgumentError("project_id is not configured")
        return f"{self.endpoint}/projects/{self.project_id}/messages:send"


# Global config instance
_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config


def set_config(config: ClientConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
