"""Messaging provider event models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProviderEventType(str, Enum):
    """Events emitted by the messaging provider."""
    QR = "qr"
    READY = "ready"
    AUTHENTICATED = "authenticated"
    AUTH_FAILURE = "auth_failure"
    MESSAGE = "message"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class IncomingMessage(BaseModel):
    """Inbound chat message as delivered by the provider."""
    model_config = ConfigDict(populate_by_name=True)

    body: str = Field(default="", description="Message text")
    chat_id: str = Field(default="", alias="from", description="Sender chat id, e.g. 15551234567@c.us")
    contact_number: Optional[str] = Field(None, alias="number", description="Sender phone number from the contact card")
    push_name: Optional[str] = Field(None, alias="pushname", description="Name the sender set for themselves")
    contact_name: Optional[str] = Field(None, alias="name", description="Name saved in the address book")
    message_id: Optional[str] = Field(None, alias="id", description="Provider message id")

    @property
    def sender_number(self) -> str:
        """Bare phone number: the contact number, else the chat id without its @c.us/@g.us suffix."""
        if self.contact_number:
            return self.contact_number
        return self.chat_id.split("@", 1)[0]

    @property
    def sender_name(self) -> str:
        """Push name, then contact name, then 'Unknown'."""
        return self.push_name or self.contact_name or "Unknown"


class ProviderEvent(BaseModel):
    """Single event from the messaging provider's event stream."""
    type: ProviderEventType = Field(..., description="Event type")
    qr: Optional[str] = Field(None, description="Pairing code payload for qr events")
    reason: Optional[str] = Field(None, description="Reason for auth_failure/disconnected events")
    detail: Optional[str] = Field(None, description="Error detail for error events")
    fatal: bool = Field(default=True, description="Whether an error event ends the session")
    message: Optional[IncomingMessage] = Field(None, description="Payload for message events")
