"""Notification models."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from helpdesk_sync.models.wire import WireModel, as_utc


class Notification(WireModel):
    """User notification. ``read`` only ever flips from False to True."""

    id: int
    title: str = Field(default="", alias="titulo")
    body: str = Field(default="", alias="mensaje")
    ticket_id: Optional[int] = Field(default=None, alias="ticketId")
    read: bool = Field(default=False, alias="leida")
    created_at: Optional[datetime] = Field(default=None, alias="creadoEn")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class NotificationPage(WireModel):
    """One page of the notification listing."""

    content: List[Notification] = Field(default_factory=list)
    total_pages: int = Field(default=1, alias="totalPages")
    page: int = Field(default=0, alias="number")
    size: int = 10
