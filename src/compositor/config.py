"""Configuration schemas for the dispatcher and the notification hub."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DispatcherConfig(BaseModel):
    """Dispatcher configuration."""

    model_config = ConfigDict(frozen=True)

    recurse: bool = Field(
        default=True,
        description=(
            "Whether composite behaviors are followed by dispatch into their "
            "children unless registered with an explicit recurse flag"
        ),
    )


class HubConfig(BaseModel):
    """Notification hub configuration."""

    model_config = ConfigDict(frozen=True)

    default_timeout: float | None = Field(
        default=None,
        description="Seconds a publish may spend delivering when no bound is given",
    )
    error_policy: Literal["log", "raise"] = Field(
        default="log",
        description="'log' records observer failures and continues, 'raise' re-raises",
    )

    @field_validator("default_timeout")
    @classmethod
    def validate_default_timeout(cls, v: float | None) -> float | None:
        """Validate the default timeout."""
        if v is not None and v <= 0:
            msg = "default_timeout must be positive"
            raise ValueError(msg)
        return v
