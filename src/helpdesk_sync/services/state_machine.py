"""
Ticket lifecycle state machine.

Transitions are decided by a permission matrix keyed by
``(role, current_status)`` instead of role checks scattered through the
views. Everything here is pure: callers persist the returned ticket against
the backend and only cache it once the backend confirms.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from helpdesk_sync.models.session import Role
from helpdesk_sync.models.ticket import TERMINAL_STATUSES, Ticket, TicketStatus
from helpdesk_sync.utils.error_handling import PermissionDeniedError, TerminalStateError

PermissionMatrix = Dict[Tuple[Role, TicketStatus], FrozenSet[TicketStatus]]

ALL_STATUSES: FrozenSet[TicketStatus] = frozenset(TicketStatus)
ACTIVE_STATUSES: FrozenSet[TicketStatus] = ALL_STATUSES - TERMINAL_STATUSES

# Roles that manage tickets. Requesters only ever read status.
STAFF_ROLES = (Role.TECHNICIAN, Role.ADMINISTRATOR)

# Only administrators hand tickets to technicians.
ASSIGN_ROLES = (Role.ADMINISTRATOR,)


def build_permission_matrix(allow_admin_reopen: bool = False) -> PermissionMatrix:
    """
    Build the (role, current status) -> allowed targets lookup.

    Staff may move an active ticket to any other status, PENDING -> CLOSED
    included. Terminal statuses have no outgoing edges unless
    ``allow_admin_reopen`` is set, in which case administrators (only) may
    move them back to an active status.
    """
    matrix: PermissionMatrix = {}
    for role in Role:
        for current in TicketStatus:
            allowed: FrozenSet[TicketStatus] = frozenset()
            if role in STAFF_ROLES and current in ACTIVE_STATUSES:
                allowed = ALL_STATUSES - {current}
            elif (
                allow_admin_reopen
                and role is Role.ADMINISTRATOR
                and current in TERMINAL_STATUSES
            ):
                allowed = ACTIVE_STATUSES
            matrix[(role, current)] = allowed
    return matrix


class TicketStateMachine:
    """Validate ticket status transitions for a given actor role."""

    def __init__(self, allow_admin_reopen: bool = False):
        self.allow_admin_reopen = allow_admin_reopen
        self._matrix = build_permission_matrix(allow_admin_reopen)

    @staticmethod
    def is_terminal(status: TicketStatus) -> bool:
        return status in TERMINAL_STATUSES

    def allowed_transitions(self, ticket: Ticket, role: Role) -> FrozenSet[TicketStatus]:
        """Statuses ``role`` may move ``ticket`` to (excluding its current one)."""
        return self._matrix[(role, ticket.status)]

    def can_transition(self, ticket: Ticket, requested: TicketStatus, role: Role) -> bool:
        return requested == ticket.status or requested in self.allowed_transitions(
            ticket, role
        )

    def attempt_transition(
        self, ticket: Ticket, requested: TicketStatus, actor_role: Role
    ) -> Ticket:
        """
        Return ``ticket`` moved to ``requested``.

        Requesting the current status is an idempotent no-op for every role.
        Raises TerminalStateError when the ticket is CLOSED/VOID and the
        reopening policy does not let this actor out, PermissionDeniedError
        when the actor's role has no such edge.
        """
        requested = TicketStatus(requested)
        if requested == ticket.status:
            return ticket

        if requested in self.allowed_transitions(ticket, actor_role):
            return ticket.with_status(requested)

        if ticket.is_terminal:
            raise TerminalStateError(
                f"Ticket {ticket.id} is {ticket.status.value} and cannot move to "
                f"{requested.value}"
            )
        raise PermissionDeniedError(
            f"Role {Role(actor_role).value} cannot move ticket {ticket.id} from "
            f"{ticket.status.value} to {requested.value}"
        )

    @staticmethod
    def can_assign(role: Role) -> bool:
        return Role(role) in ASSIGN_ROLES

    def ensure_can_assign(self, ticket: Ticket, actor_role: Role) -> None:
        """Raise PermissionDeniedError unless ``actor_role`` may assign ``ticket``."""
        if not self.can_assign(actor_role):
            raise PermissionDeniedError(
                f"Role {Role(actor_role).value} cannot assign ticket {ticket.id}"
            )
