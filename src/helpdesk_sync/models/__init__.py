"""Pydantic models for backend payloads and client state."""

from helpdesk_sync.models.message import Message  # noqa: F401
from helpdesk_sync.models.notification import Notification, NotificationPage  # noqa: F401
from helpdesk_sync.models.response import ActionFeedback  # noqa: F401
from helpdesk_sync.models.session import Role, SessionContext  # noqa: F401
from helpdesk_sync.models.ticket import (  # noqa: F401
    TERMINAL_STATUSES,
    Priority,
    Technician,
    Ticket,
    TicketStatus,
)
