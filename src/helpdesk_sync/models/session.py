"""Session context injected into every engine and repository."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """User roles as the backend spells them."""

    REQUESTER = "USUARIO"
    TECHNICIAN = "TECNICO"
    ADMINISTRATOR = "ADMINISTRADOR"


class SessionContext(BaseModel):
    """
    Who is talking to the backend and with which credential.

    The token is opaque: issued and refreshed by the auth collaborator, only
    attached to requests here.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str
    token: str = Field(repr=False)
    role: Role
    user_id: Optional[int] = None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        cleaned = (value or "").strip().rstrip("/")
        if not cleaned:
            raise ValueError("base_url must be provided")
        return cleaned

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
