"""Message models."""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import Field, field_validator

from helpdesk_sync.models.wire import WireModel, as_utc


class Message(WireModel):
    """One entry of a ticket's conversation thread."""

    id: int
    ticket_id: Optional[int] = Field(default=None, alias="ticketId")
    author_id: Optional[int] = Field(default=None, alias="autorId")
    author_name: str = Field(default="", alias="autorNombre")
    author_role: Optional[str] = Field(default=None, alias="autorRol")
    body: str = Field(alias="mensaje")
    sent_at: datetime = Field(alias="fecha")

    @field_validator("sent_at")
    @classmethod
    def normalize_sent_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def sort_key(self) -> Tuple[datetime, int]:
        """Total order: sent_at alone is not unique."""
        return (self.sent_at, self.id)
