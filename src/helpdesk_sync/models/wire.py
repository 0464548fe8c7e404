"""Base model for payloads exchanged with the helpdesk backend."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """
    Immutable model that reads the backend's field names and exposes
    Python ones.

    ``populate_by_name`` lets tests and callers build instances with the
    Python names, while ``to_wire()`` emits the backend's names unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps without an offset are UTC on the backend."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
