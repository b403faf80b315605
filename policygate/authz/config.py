"""Authorizer configuration via pydantic-settings."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthorizerSettings(BaseSettings):
    """Authorizer settings loaded from environment.

    Environment variables use the POLICYGATE_ prefix, e.g.
    POLICYGATE_SEPARATOR=":" or POLICYGATE_METRICS_PORT=9108.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLICYGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    separator: str = Field(
        default=".",
        description="Separator between namespace and rule in rule identifiers"
    )
    auth_ctx_field: str = Field(
        default="auth_ctx",
        description="Policy field receiving the principal on the dynamic path"
    )

    # Metrics
    metrics_enabled: bool = Field(
        default=True,
        description="Record authorization latency with prometheus_client"
    )
    metrics_namespace: str = Field(
        default="policygate",
        description="Prometheus metric namespace"
    )
    metrics_port: int | None = Field(
        default=None,
        description="Serve /metrics on this port when set"
    )

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, value: str) -> str:
        """Reject an empty separator."""
        if not value:
            raise ValueError("separator must not be empty")
        return value

    @field_validator("auth_ctx_field")
    @classmethod
    def validate_auth_ctx_field(cls, value: str) -> str:
        """Require a public Python identifier."""
        if not value.isidentifier() or value.startswith("_"):
            raise ValueError(f"auth_ctx_field must be a public identifier, got {value!r}")
        return value

    @field_validator("metrics_port")
    @classmethod
    def validate_metrics_port(cls, value: int | None) -> int | None:
        if value is not None and not 0 < value < 65536:
            raise ValueError(f"metrics_port out of range: {value}")
        return value
