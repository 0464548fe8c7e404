"""Ticket Service repository: tickets, status, assignee and messages."""

from typing import List, Optional

from pydantic import ValidationError as PayloadError

from helpdesk_sync.models.message import Message
from helpdesk_sync.models.ticket import Ticket, TicketStatus
from helpdesk_sync.repositories.http_client import (
    HelpdeskHttpClient,
    parse_models,
)
from helpdesk_sync.utils.logging_config import get_logger

logger = get_logger(__name__)


class TicketRepository:
    """Provide the ticket endpoints the sync core consumes."""

    def __init__(self, client: HelpdeskHttpClient):
        self.client = client

    async def list_visible(self) -> List[Ticket]:
        """All tickets the current session may see."""
        payload = await self.client.call("GET", "/tickets/historial")
        return parse_models(Ticket, payload or [])

    async def set_status(self, ticket_id: int, status: TicketStatus) -> None:
        await self.client.call(
            "PUT", f"/tickets/{ticket_id}/estado", params={"estado": status.value}
        )

    async def set_assignee(self, ticket_id: int, technician_id: int) -> None:
        await self.client.call(
            "PUT", f"/tickets/{ticket_id}/asignar", params={"tecnicoId": technician_id}
        )

    async def list_messages(self, ticket_id: int) -> List[Message]:
        """Full message snapshot; the backend has no delta feed."""
        payload = await self.client.call("GET", f"/tickets/{ticket_id}/respuestas")
        return parse_models(Message, payload or [])

    async def post_message(self, ticket_id: int, body: str) -> Optional[Message]:
        """Post a reply; returns the created message when the backend echoes it."""
        payload = await self.client.call(
            "POST",
            "/tickets/responder",
            json_body={"ticketId": ticket_id, "mensaje": body},
        )
        if not isinstance(payload, dict):
            return None
        try:
            return Message.model_validate(payload)
        except PayloadError:
            # The post succeeded regardless of what the echo looks like.
            logger.warning("Unparseable message echo", extra={"ticket_id": ticket_id})
            return None
