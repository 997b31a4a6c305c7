"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (how MCP hosts pass configuration)
  - Fall back to a .env file in the working directory
  - Validate types and constraints at startup
  - Keep the service-account key out of logs (SecretStr)

Required:
  GOOGLE_CLOUD_PROJECT_ID   project owning the managed zones
                            (GOOGLE_CLOUD_PROJECT is accepted as a fallback)
  GOOGLE_CLOUD_CREDENTIALS  service-account key JSON, or a path to the key file

Optional tunables use the GCLOUD_DNS_ prefix, e.g. GCLOUD_DNS_LOG_LEVEL.

All configuration errors surface as ConfigError before any network call.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from gcloud_dns_mcp.adapters.credentials import load_service_account
from gcloud_dns_mcp.adapters.http_client import DEFAULT_BASE_URL
from gcloud_dns_mcp.domain.models import ServiceAccountCredential
from gcloud_dns_mcp.errors import ConfigError

_REQUIRED_HINTS = {
    "project_id": (
        "Google Cloud Project ID is required. "
        "Set the GOOGLE_CLOUD_PROJECT_ID environment variable."
    ),
    "credentials": (
        "Google Cloud service account credentials are required. "
        "Set the GOOGLE_CLOUD_CREDENTIALS environment variable."
    ),
}


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Constructor arguments (tests)
      2. Environment variables
      3. .env file
      4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="GCLOUD_DNS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("GOOGLE_CLOUD_PROJECT_ID", "GOOGLE_CLOUD_PROJECT"),
        description="Google Cloud project owning the managed zones",
    )
    credentials: SecretStr = Field(
        validation_alias=AliasChoices("GOOGLE_CLOUD_CREDENTIALS"),
        description="Service-account key JSON or path to the key file",
    )

    api_base_url: str = Field(default=DEFAULT_BASE_URL)
    http_timeout_seconds: float = Field(default=60, gt=0)
    change_timeout_seconds: float = Field(default=300, gt=0)
    change_poll_interval_seconds: float = Field(default=2, gt=0)
    token_safety_margin_seconds: float = Field(default=60, ge=60)
    log_level: str = Field(default="INFO")

    @field_validator("project_id")
    @classmethod
    def strip_project_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project id must not be blank")
        return value

    @field_validator("credentials")
    @classmethod
    def require_credentials(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("credentials must not be blank")
        return value

    @property
    def change_timeout_ms(self) -> int:
        return int(self.change_timeout_seconds * 1000)

    def service_account(self) -> ServiceAccountCredential:
        """Parse the configured credentials. Raises ConfigError when malformed."""
        return load_service_account(self.credentials.get_secret_value())


def load_settings(**overrides: Any) -> AppSettings:
    """
    Load AppSettings, turning pydantic validation failures into ConfigError.

    The message names the environment variable to set for required values.
    """
    try:
        return AppSettings(**overrides)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "settings"
            hint = _REQUIRED_HINTS.get(_field_name(field))
            problems.append(hint or f"{field}: {err['msg']}")
        raise ConfigError("Configuration error — " + "; ".join(dict.fromkeys(problems))) from e


def _field_name(loc: str) -> str:
    lowered = loc.lower()
    if lowered.startswith("google_cloud_project"):
        return "project_id"
    if lowered == "google_cloud_credentials":
        return "credentials"
    return lowered
