"""Cached ticket state with confirm-then-apply status changes."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from helpdesk_sync.models.session import Role
from helpdesk_sync.models.ticket import Ticket, TicketStatus
from helpdesk_sync.repositories.ticket_repo import TicketRepository
from helpdesk_sync.services.state_machine import TicketStateMachine
from helpdesk_sync.utils.error_handling import NotFoundError
from helpdesk_sync.utils.inflight import InFlightRegistry
from helpdesk_sync.utils.logging_config import get_logger

logger = get_logger(__name__)

TicketListener = Callable[[Ticket], None]


class TicketService:
    """
    Holds the client's cached copy of each open ticket.

    The cache only ever changes after the backend confirmed a mutation (or a
    fresh listing arrived); nothing is applied optimistically.
    """

    def __init__(
        self,
        repository: TicketRepository,
        state_machine: Optional[TicketStateMachine] = None,
        inflight: Optional[InFlightRegistry] = None,
    ):
        self.repository = repository
        self.state_machine = state_machine or TicketStateMachine()
        self.inflight = inflight or InFlightRegistry()
        self._tickets: Dict[int, Ticket] = {}
        self._listeners: List[TicketListener] = []

    def on_change(self, listener: TicketListener) -> Callable[[], None]:
        """Register a listener for committed ticket updates; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get(self, ticket_id: int) -> Ticket:
        try:
            return self._tickets[ticket_id]
        except KeyError:
            raise NotFoundError(f"Ticket {ticket_id} not loaded") from None

    def is_busy(self, ticket_id: int) -> bool:
        """True while a status or assignment request for the ticket is outstanding."""
        return self.inflight.is_busy(ticket_id)

    def commit(self, ticket: Ticket) -> Ticket:
        """Store a backend-confirmed ticket and notify listeners."""
        self._tickets[ticket.id] = ticket
        for listener in list(self._listeners):
            listener(ticket)
        return ticket

    async def refresh(self) -> List[Ticket]:
        """Reload every visible ticket; the latest listing wins."""
        tickets = await self.repository.list_visible()
        for ticket in tickets:
            self.commit(ticket)
        logger.info("Tickets refreshed", extra={"count": len(tickets)})
        return tickets

    async def load(self, ticket_id: int) -> Ticket:
        """Fetch one ticket; the backend only exposes the visible listing."""
        tickets = await self.repository.list_visible()
        for ticket in tickets:
            if ticket.id == ticket_id:
                return self.commit(ticket)
        raise NotFoundError(f"Ticket {ticket_id} not found or not visible")

    async def change_status(
        self, ticket_id: int, requested: TicketStatus, actor_role: Role
    ) -> Ticket:
        """
        Validate, persist, then cache a status change.

        Local rule violations raise before any request is made. A failed
        request leaves the cached ticket untouched and is not retried.
        """
        current = self.get(ticket_id)
        updated = self.state_machine.attempt_transition(current, requested, actor_role)
        if updated is current:
            return current

        with self.inflight.hold(ticket_id):
            await self.repository.set_status(ticket_id, updated.status)

        confirmed = self.get(ticket_id).with_status(updated.status)
        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket_id,
                "from": current.status.value,
                "to": confirmed.status.value,
            },
        )
        return self.commit(confirmed)
