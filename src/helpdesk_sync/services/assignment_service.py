"""Technician assignment with the PENDING -> ASSIGNED side effect."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from helpdesk_sync.models.session import Role
from helpdesk_sync.models.ticket import Technician, Ticket, TicketStatus
from helpdesk_sync.repositories.personnel_repo import PersonnelRepository
from helpdesk_sync.services.ticket_service import TicketService
from helpdesk_sync.utils.cache_service import LRUCache
from helpdesk_sync.utils.error_handling import (
    AlreadyClosedError,
    NotFoundError,
    ValidationError,
)
from helpdesk_sync.utils.logging_config import get_logger
from helpdesk_sync.utils.validators import ensure_present

logger = get_logger(__name__)

ROSTER_CACHE_KEY = "personnel:technicians"


class AssignmentCoordinator:
    """Assign technicians to tickets, confirm-then-apply."""

    def __init__(
        self,
        tickets: TicketService,
        personnel: PersonnelRepository,
        roster_cache: Optional[LRUCache] = None,
    ):
        self.tickets = tickets
        self.personnel = personnel
        self.roster_cache = roster_cache or LRUCache(max_size=1, ttl_seconds=300)

    async def roster(self, refresh: bool = False) -> List[Technician]:
        """Assignable technicians, cached between assignments."""
        if not refresh:
            cached = self.roster_cache.get(ROSTER_CACHE_KEY)
            if cached is not None:
                return cached
        technicians = await self.personnel.list_technicians()
        self.roster_cache.set(ROSTER_CACHE_KEY, technicians)
        logger.info("Technician roster loaded", extra={"count": len(technicians)})
        return technicians

    @staticmethod
    def plan_assignment(
        ticket: Ticket, technician_id: int, roster: Sequence[Technician]
    ) -> Ticket:
        """
        Build the assigned ticket without touching the backend.

        Assignee and (from PENDING) the ASSIGNED status land in a single new
        ticket value, so no observer can see one change without the other.
        """
        if ticket.is_terminal:
            raise AlreadyClosedError(
                f"Ticket {ticket.id} is {ticket.status.value}; it cannot be assigned"
            )
        technician = next((t for t in roster if t.id == technician_id), None)
        if technician is None:
            raise NotFoundError(f"Technician {technician_id} is not assignable")

        update = {
            "assigned_technician_id": technician.id,
            "technician_name": technician.name,
            "technician_email": technician.email,
        }
        if ticket.status is TicketStatus.PENDING:
            update["status"] = TicketStatus.ASSIGNED
        return ticket.model_copy(update=update)

    async def assign(
        self, ticket: Ticket, technician_id: Any, actor_role: Role
    ) -> Ticket:
        """
        Persist an assignment and cache the result once the backend confirms.

        Role, terminal status and selection are checked before any request.
        """
        self.tickets.state_machine.ensure_can_assign(ticket, actor_role)
        if ticket.is_terminal:
            raise AlreadyClosedError(
                f"Ticket {ticket.id} is {ticket.status.value}; it cannot be assigned"
            )
        ensure_present(technician_id, "technician")
        try:
            technician_id = int(technician_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid technician id {technician_id!r}") from None

        with self.tickets.inflight.hold(ticket.id):
            planned = self.plan_assignment(ticket, technician_id, await self.roster())
            await self.tickets.repository.set_assignee(ticket.id, technician_id)

        logger.info(
            "Ticket assigned",
            extra={
                "ticket_id": ticket.id,
                "technician_id": technician_id,
                "status": planned.status.value,
            },
        )
        return self.tickets.commit(planned)
