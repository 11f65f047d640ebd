"""Connection state models."""

from enum import Enum
from pydantic import BaseModel, Field


class ConnectionState(str, Enum):
    """Coarse connection state of the messaging provider client."""
    DISCONNECTED = "disconnected"
    INITIALIZING = "initializing"
    READY = "ready"


class ConnectStatus(str, Enum):
    """Outcome of a connect request."""
    ALREADY_CONNECTED = "already_connected"
    CONNECTING = "connecting"


class ConnectResult(BaseModel):
    """Response to a connect request."""
    status: ConnectStatus
    message: str


class ConnectionSnapshot(BaseModel):
    """Point-in-time view of the connection and pairing artifacts."""
    state: ConnectionState
    qr: str = Field(default="", description="Latest raw pairing code")
    qr_image: str = Field(default="", description="Latest pairing code rendered as a PNG data URL")

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.READY

    @property
    def initializing(self) -> bool:
        return self.state == ConnectionState.INITIALIZING
