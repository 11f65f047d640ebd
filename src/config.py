"""Application configuration loaded from environment variables."""

import os
import shlex
from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Runtime settings for the HTTP server and the messaging provider bridge."""
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3001, ge=1, le=65535, description="HTTP port")
    bridge_command: list[str] = Field(
        default_factory=lambda: ["node", "whatsapp-bridge.js"],
        description="Command line that starts the WhatsApp Web bridge process"
    )
    provider_shutdown_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound on provider teardown during shutdown"
    )
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from environment variables, falling back to defaults."""
        values = {}

        if os.environ.get("HOST"):
            values["host"] = os.environ["HOST"]
        if os.environ.get("PORT"):
            values["port"] = os.environ["PORT"]
        if os.environ.get("WHATSAPP_BRIDGE_COMMAND"):
            values["bridge_command"] = shlex.split(os.environ["WHATSAPP_BRIDGE_COMMAND"])
        if os.environ.get("PROVIDER_SHUTDOWN_TIMEOUT_SECONDS"):
            values["provider_shutdown_timeout_seconds"] = os.environ["PROVIDER_SHUTDOWN_TIMEOUT_SECONDS"]
        if os.environ.get("CORS_ALLOW_ORIGINS"):
            values["cors_allow_origins"] = [
                origin.strip()
                for origin in os.environ["CORS_ALLOW_ORIGINS"].split(",")
                if origin.strip()
            ]

        return cls(**values)
