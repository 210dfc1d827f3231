"""Splitwise connection configuration."""

import os
from pydantic import BaseModel, Field


SPLITWISE_API_BASE = "https://secure.splitwise.com/api/v3.0"


class SplitwiseConfig(BaseModel):
    """Settings handed to the Splitwise provider at construction.

    Build it once at the edge (API app, CLI) with from_env(); nothing below
    the edge reads the environment.
    """

    api_key: str = ""
    base_url: str = SPLITWISE_API_BASE  # Point at a proxy to route requests elsewhere
    timeout: float = 30.0
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "SplitwiseConfig":
        """Read configuration from environment variables."""
        origins = os.environ.get("CARTSPLIT_CORS_ORIGINS", "")
        kwargs = {
            "api_key": os.environ.get("SPLITWISE_API_KEY", ""),
            "base_url": os.environ.get("SPLITWISE_BASE_URL", SPLITWISE_API_BASE).rstrip("/"),
            "timeout": float(os.environ.get("SPLITWISE_TIMEOUT", "30")),
        }
        if origins:
            kwargs["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(**kwargs)
