"""Configuration helpers for the Linear GraphQL client."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

API_KEY_PREFIX = "lin_api_"


class MissingTokenError(ValueError):
    """Raised when neither a key nor a key file was configured."""


class LinearAPIConfig(BaseSettings):
    """Settings for direct Linear GraphQL API access."""

    api_url: str = Field(
        "https://api.linear.app/graphql",
        description="Linear GraphQL API endpoint.",
    )
    access_token: str | None = Field(
        default=None,
        description="Linear Personal API Key.",
    )
    token_path: Path | None = Field(
        default=None,
        description="Optional path to a file that contains the API key.",
    )
    http_timeout: float = Field(
        default=30.0,
        description="HTTP timeout (seconds) for GraphQL requests.",
    )

    model_config = SettingsConfigDict(env_prefix="LINEAR_API_", env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def _populate_token(self) -> "LinearAPIConfig":
        """Ensure we have a well-formed key either directly or via ``token_path``."""

        if not self.access_token and self.token_path:
            token_file = self.token_path.expanduser()
            if not token_file.exists():  # pragma: no cover - depends on user setup
                raise ValueError(f"Token file '{token_file}' not found")
            self.access_token = token_file.read_text(encoding="utf-8").strip()

        if not self.access_token:
            raise MissingTokenError("Provide LINEAR_API_ACCESS_TOKEN or LINEAR_API_TOKEN_PATH")

        if not is_api_key(self.access_token):
            raise ValueError(f"Invalid key format. Must start with '{API_KEY_PREFIX}'")

        return self


def is_api_key(value: str) -> bool:
    return value.startswith(API_KEY_PREFIX)


def is_missing_token(exc: ValueError) -> bool:
    """True when config validation failed only because no key was configured."""
    if isinstance(exc, MissingTokenError):
        return True
    if not isinstance(exc, ValidationError):
        return False
    errors = exc.errors()
    return bool(errors) and all(
        isinstance(error.get("ctx", {}).get("error"), MissingTokenError) for error in errors
    )
