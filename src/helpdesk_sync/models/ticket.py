"""Ticket models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from helpdesk_sync.models.wire import WireModel, as_utc


class TicketStatus(str, Enum):
    """Lifecycle statuses; values are the backend's wire tokens."""

    PENDING = "PENDIENTE"
    ASSIGNED = "ASIGNADO"
    IN_PROGRESS = "EN_PROCESO"
    CLOSED = "CERRADO"
    VOID = "ANULADO"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


TERMINAL_STATUSES = frozenset({TicketStatus.CLOSED, TicketStatus.VOID})


class Priority(str, Enum):
    """Ticket priority; values are the backend's wire tokens."""

    HIGH = "ALTA"
    MEDIUM = "MEDIA"
    LOW = "BAJA"


class Technician(WireModel):
    """Assignable technician from the personnel directory."""

    id: int
    name: str = Field(alias="nombres")
    email: Optional[str] = Field(default=None, alias="correo")


class Ticket(WireModel):
    """Cached copy of a backend ticket. Updates produce a new instance."""

    id: int
    title: str = Field(alias="titulo")
    description: str = Field(default="", alias="descripcion")
    status: TicketStatus = Field(alias="estado")
    priority: Priority = Field(default=Priority.MEDIUM, alias="prioridad")
    category: Optional[str] = Field(default=None, alias="categoria")
    created_at: Optional[datetime] = Field(default=None, alias="fechaCreacion")
    assigned_technician_id: Optional[int] = Field(default=None, alias="tecnicoId")
    technician_name: Optional[str] = Field(default=None, alias="tecnicoNombre")
    technician_email: Optional[str] = Field(default=None, alias="tecnicoCorreo")

    @model_validator(mode="before")
    @classmethod
    def flatten_technician(cls, data: Any) -> Any:
        """Accept the nested ``tecnico`` object some endpoints return."""
        if not isinstance(data, dict) or not isinstance(data.get("tecnico"), dict):
            return data
        technician = data["tecnico"]
        flat = {k: v for k, v in data.items() if k != "tecnico"}
        flat["tecnicoId"] = flat.get("tecnicoId") or technician.get("id")
        flat["tecnicoNombre"] = flat.get("tecnicoNombre") or technician.get("nombres")
        flat["tecnicoCorreo"] = flat.get("tecnicoCorreo") or technician.get("correo")
        return flat

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_status(self, status: TicketStatus) -> "Ticket":
        return self.model_copy(update={"status": status})
