"""Configuration system for classifier-sdk.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (CLASSIFIER_*) -> .env file -> field defaults.

A config instance is frozen after construction. The client owns it and
hands the same object to the transport session and request coordinator.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from classifier_sdk.exceptions import ConfigValidationError

DEFAULT_GRPC_ADDRESS = "trust-messages-global.crispthinking.com:443"

_LOG_LEVELS: frozenset[str] = frozenset({"none", "summary", "full"})


class ClassifierConfig(BaseSettings):
    """Configuration for classifier-sdk.

    Resolution order: init kwargs -> env vars (CLASSIFIER_*) -> .env file -> defaults.

    Fields are divided into groups:
    - **Service**: address, deployment, default affiliate, heartbeat.
    - **Authentication**: OAuth client-credentials settings.
    - **Transport**: TLS, deadlines, channel keepalive.
    - **Logging**: per-submission diagnostics.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLASSIFIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # --- Service ---

    grpc_address: str = Field(
        default=DEFAULT_GRPC_ADDRESS,
        description="Classification service address (host:port)",
    )
    deployment_id: str = Field(
        default="",
        description="Deployment that streaming requests are routed to",
    )
    affiliate: str = Field(
        default="",
        description="Default affiliate for inputs that do not name one",
    )
    heartbeat_interval_ms: float = Field(
        default=10_000.0,
        description="Interval between keep-warm writes on an open stream",
    )

    # --- Authentication ---

    oauth_issuer_url: str = Field(
        default="https://crispthinking.auth0.com/",
        description="OIDC issuer used for discovery",
    )
    oauth_client_id: str = Field(
        default="",
        description="OAuth client ID",
    )
    oauth_client_secret: str = Field(
        default="",
        description="OAuth client secret",
    )
    oauth_scope: str = Field(
        default="manage:classify",
        description="OAuth scope requested with the client-credentials grant",
    )
    oauth_audience: str = Field(
        default="crisp-athena-live",
        description="OAuth audience requested with the client-credentials grant",
    )
    oauth_auto_refresh: bool = Field(
        default=True,
        description="Use the refresh-token grant when a token expires",
    )

    # --- Transport ---

    grpc_insecure: bool = Field(
        default=False,
        description="Use a plaintext channel (local servers only)",
    )
    grpc_timeout_ms: float = Field(
        default=30_000.0,
        description="Deadline for unary calls in milliseconds",
    )
    grpc_keepalive_time_ms: int = Field(
        default=30_000,
        description="HTTP/2 keepalive ping interval for the channel",
    )

    # --- Logging ---

    log_level: str = Field(
        default="summary",
        description="Submission logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all submission records in memory for analysis",
    )

    @field_validator("heartbeat_interval_ms", "grpc_timeout_ms")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        if value not in _LOG_LEVELS:
            raise ValueError(f"must be one of {sorted(_LOG_LEVELS)}")
        return value

    @property
    def heartbeat_interval_s(self) -> float:
        """Heartbeat interval in seconds."""
        return self.heartbeat_interval_ms / 1000.0

    @property
    def grpc_timeout_s(self) -> float:
        """Unary call deadline in seconds."""
        return self.grpc_timeout_ms / 1000.0


def load_config(**overrides: Any) -> ClassifierConfig:
    """Build a config from keyword overrides, environment and ``.env``.

    Pydantic validation failures are re-raised as
    :class:`ConfigValidationError` so callers only need to catch the
    library's own hierarchy.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        A frozen ClassifierConfig.

    Raises:
        ConfigValidationError: If any field fails validation.
    """
    try:
        return ClassifierConfig(**overrides)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc
