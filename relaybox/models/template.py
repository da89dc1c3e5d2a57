"""
Message template and message models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from relaybox.messaging.base import Destination


class MessageType(str, Enum):
    """Message body types."""

    TEXT = "TEXT"
    BYTES = "BYTES"
    MAP = "MAP"
    MESSAGE = "MESSAGE"  # Headers and properties only


class DeliveryMode(str, Enum):
    """Message delivery modes."""

    PERSISTENT = "PERSISTENT"
    NON_PERSISTENT = "NON_PERSISTENT"


class Message(BaseModel):
    """A message ready to be sent by a connection."""

    message_id: str = Field(default_factory=lambda: uuid4().hex)
    message_type: MessageType = Field(default=MessageType.TEXT)
    destination: str | None = Field(default=None, description="Destination name")

    text: str | None = Field(default=None, description="Body of TEXT messages")
    data: bytes | None = Field(default=None, description="Body of BYTES messages")
    map: dict[str, Any] = Field(default_factory=dict, description="Body of MAP messages")

    properties: dict[str, Any] = Field(default_factory=dict)
    priority: int = Field(default=4, ge=0, le=9)
    delivery_mode: DeliveryMode = Field(default=DeliveryMode.PERSISTENT)
    time_to_live: int = Field(default=0, ge=0, description="Milliseconds, 0 = never expires")
    correlation_id: str | None = None
    reply_to: str | None = None
    type: str | None = None

    timestamp: datetime | None = Field(default=None, description="Set when sent")


class MessageTemplate(BaseModel):
    """
    A pre-authored message definition.

    Templates are shared by every iteration of a run, so they must be
    cloned with deep_clone() before their payload is rewritten.
    """

    message_type: MessageType = Field(default=MessageType.TEXT, description="Body type")
    payload_text: str | None = Field(default=None, description="Text payload (supports ${variables})")
    payload_map: dict[str, Any] = Field(default_factory=dict, description="Payload of MAP messages")

    properties: dict[str, Any] = Field(default_factory=dict, description="User properties")
    priority: int = Field(default=4, ge=0, le=9)
    delivery_mode: DeliveryMode = Field(default=DeliveryMode.PERSISTENT)
    time_to_live: int = Field(default=0, ge=0)
    correlation_id: str | None = None
    reply_to: str | None = None
    type: str | None = None

    @field_validator("message_type", "delivery_mode", mode="before")
    @classmethod
    def normalize_enums(cls, v):
        """Accept enum values in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    def deep_clone(self) -> "MessageTemplate":
        """Get an independent copy of this template."""
        return self.model_copy(deep=True)

    def to_message(self, destination: "Destination", message: Message) -> Message:
        """
        Fill a connection-built message from this template.

        Args:
            destination: Destination the message is posted to
            message: Empty message created by the connection

        Returns:
            The filled message
        """
        message.destination = destination.name
        message.properties = dict(self.properties)
        message.priority = self.priority
        message.delivery_mode = self.delivery_mode
        message.time_to_live = self.time_to_live
        message.correlation_id = self.correlation_id
        message.reply_to = self.reply_to
        message.type = self.type

        if self.message_type == MessageType.TEXT:
            message.text = self.payload_text
        elif self.message_type == MessageType.BYTES:
            message.data = (self.payload_text or "").encode("utf-8")
        elif self.message_type == MessageType.MAP:
            message.map = dict(self.payload_map)

        return message
