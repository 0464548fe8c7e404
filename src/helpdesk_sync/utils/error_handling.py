"""Custom exceptions and helpers for consistent action feedback."""

from typing import Optional

from helpdesk_sync.models.response import ActionFeedback


class HelpdeskError(Exception):
    """Base class for helpdesk client errors."""

    kind = "error"

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(HelpdeskError):
    """Raised when input validation fails (empty body, no technician selected)."""

    kind = "validation"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class PermissionDeniedError(HelpdeskError):
    """Raised when the actor's role does not allow the requested transition."""

    kind = "permission"

    def __init__(self, message: str = "Action not allowed for this role"):
        super().__init__(message, status_code=403)


# Public name used throughout the error taxonomy.
PermissionError = PermissionDeniedError  # noqa: A001


class TerminalStateError(HelpdeskError):
    """Raised when a mutation targets a CLOSED or VOID ticket."""

    kind = "terminal_state"

    def __init__(self, message: str = "Ticket is closed"):
        super().__init__(message, status_code=409)


class AlreadyClosedError(TerminalStateError):
    """Raised when assigning a technician to a terminal ticket."""

    def __init__(self, message: str = "Cannot assign a closed ticket"):
        super().__init__(message)


class NotFoundError(HelpdeskError):
    """Raised when a ticket, technician or notification id is unknown."""

    kind = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class NetworkError(HelpdeskError):
    """Raised on transport failures or non-success backend responses."""

    kind = "network"

    def __init__(self, message: str = "Network request failed", status_code: int = 503):
        super().__init__(message, status_code=status_code)


class StaleResponseError(HelpdeskError):
    """Raised internally when a poll result was superseded by a newer one."""

    kind = "stale"

    def __init__(self, seq: int, applied_seq: int):
        super().__init__(
            f"Poll #{seq} superseded by #{applied_seq}", status_code=409
        )
        self.seq = seq
        self.applied_seq = applied_seq


class ConcurrentMutationError(HelpdeskError):
    """Raised when a second mutation is issued while one is still in flight."""

    kind = "busy"

    def __init__(self, ticket_id: Optional[int] = None):
        super().__init__(
            f"Another update for ticket {ticket_id} is still in progress",
            status_code=409,
        )
        self.ticket_id = ticket_id


def to_feedback(control: str, error: HelpdeskError) -> ActionFeedback:
    """Convert a HelpdeskError into an inline, dismissible ActionFeedback."""
    return ActionFeedback(
        control=control,
        ok=False,
        message=str(error),
        error_kind=error.kind,
        # Only transport failures offer a manual retry.
        retryable=isinstance(error, NetworkError),
    )
