"""Inline feedback for mutating user actions."""

from typing import Optional

from pydantic import BaseModel


class ActionFeedback(BaseModel):
    """Dismissible message tied to the control that triggered an action."""

    control: str
    ok: bool
    message: str
    error_kind: Optional[str] = None
    retryable: bool = False
    dismissed: bool = False

    @classmethod
    def success(cls, control: str, message: str) -> "ActionFeedback":
        return cls(control=control, ok=True, message=message)

    def dismiss(self) -> None:
        self.dismissed = True
