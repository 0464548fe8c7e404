"""
Ticket service and assignment coordinator tests.

Run with: pytest tests/unit/test_ticket_service.py -v
"""

import asyncio

import pytest

from conftest import FakePersonnelRepository, FakeTicketRepository, make_ticket
from helpdesk_sync.models.session import Role
from helpdesk_sync.models.ticket import TicketStatus
from helpdesk_sync.services.assignment_service import AssignmentCoordinator
from helpdesk_sync.services.ticket_service import TicketService
from helpdesk_sync.utils.cache_service import LRUCache
from helpdesk_sync.utils.error_handling import (
    AlreadyClosedError,
    ConcurrentMutationError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    TerminalStateError,
    ValidationError,
)


def loaded_service(*tickets):
    repo = FakeTicketRepository(tickets=list(tickets) or [make_ticket()])
    service = TicketService(repo)
    asyncio.run(service.refresh())
    return service, repo


class TestLoading:
    def test_load_finds_visible_ticket(self):
        repo = FakeTicketRepository(tickets=[make_ticket(1), make_ticket(2)])
        service = TicketService(repo)

        ticket = asyncio.run(service.load(2))

        assert ticket.id == 2
        assert service.get(2) is ticket

    def test_load_unknown_ticket_raises_not_found(self):
        service = TicketService(FakeTicketRepository(tickets=[make_ticket(1)]))

        with pytest.raises(NotFoundError):
            asyncio.run(service.load(99))

    def test_get_before_load_raises_not_found(self):
        with pytest.raises(NotFoundError):
            TicketService(FakeTicketRepository()).get(1)


class TestChangeStatus:
    """Confirm-then-apply status changes."""

    def test_status_is_cached_after_backend_confirms(self):
        service, repo = loaded_service()
        seen = []
        service.on_change(seen.append)

        updated = asyncio.run(service.change_status(1, TicketStatus.IN_PROGRESS, Role.TECHNICIAN))

        assert repo.calls[-1] == ("set_status", 1, TicketStatus.IN_PROGRESS)
        assert updated.status is TicketStatus.IN_PROGRESS
        assert service.get(1).status is TicketStatus.IN_PROGRESS
        assert [t.status for t in seen] == [TicketStatus.IN_PROGRESS]

    def test_same_status_makes_no_request(self):
        service, repo = loaded_service()

        asyncio.run(service.change_status(1, TicketStatus.PENDING, Role.REQUESTER))

        assert repo.count("set_status") == 0

    def test_local_rule_violations_make_no_request(self):
        service, repo = loaded_service(make_ticket(1), make_ticket(2, status=TicketStatus.VOID))

        with pytest.raises(PermissionDeniedError):
            asyncio.run(service.change_status(1, TicketStatus.CLOSED, Role.REQUESTER))
        with pytest.raises(TerminalStateError):
            asyncio.run(service.change_status(2, TicketStatus.PENDING, Role.ADMINISTRATOR))
        assert repo.count("set_status") == 0

    def test_failed_request_leaves_cache_untouched(self):
        service, repo = loaded_service()
        repo.errors["set_status"] = NetworkError("timeout")

        with pytest.raises(NetworkError):
            asyncio.run(service.change_status(1, TicketStatus.CLOSED, Role.ADMINISTRATOR))

        assert service.get(1).status is TicketStatus.PENDING
        assert repo.count("set_status") == 1
        assert not service.is_busy(1)

    def test_second_mutation_while_in_flight_is_rejected(self):
        service, repo = loaded_service()

        async def scenario():
            repo.gate = asyncio.Event()
            first = asyncio.create_task(
                service.change_status(1, TicketStatus.IN_PROGRESS, Role.TECHNICIAN)
            )
            await asyncio.sleep(0)
            assert service.is_busy(1)
            with pytest.raises(ConcurrentMutationError):
                await service.change_status(1, TicketStatus.CLOSED, Role.TECHNICIAN)
            repo.gate.set()
            return await first

        result = asyncio.run(scenario())

        assert result.status is TicketStatus.IN_PROGRESS
        assert repo.count("set_status") == 1
        assert not service.is_busy(1)


class TestAssignment:
    """AssignmentCoordinator: assignee and status change land together."""

    def coordinator(self, service, personnel=None):
        return AssignmentCoordinator(service, personnel or FakePersonnelRepository())

    def test_pending_ticket_becomes_assigned_in_one_update(self):
        service, repo = loaded_service()
        coordinator = self.coordinator(service)
        seen = []
        service.on_change(seen.append)

        assigned = asyncio.run(coordinator.assign(service.get(1), 10, Role.ADMINISTRATOR))

        assert repo.calls[-1] == ("set_assignee", 1, 10)
        assert len(seen) == 1
        assert seen[0].status is TicketStatus.ASSIGNED
        assert seen[0].assigned_technician_id == 10
        assert assigned.technician_name == "Luis Tech"

    def test_reassignment_keeps_status(self):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_technician_id=10)
        service, _ = loaded_service(ticket)

        reassigned = asyncio.run(self.coordinator(service).assign(ticket, 11, Role.ADMINISTRATOR))

        assert reassigned.status is TicketStatus.IN_PROGRESS
        assert reassigned.assigned_technician_id == 11

    @pytest.mark.parametrize("status", [TicketStatus.CLOSED, TicketStatus.VOID])
    def test_terminal_ticket_cannot_be_assigned(self, status):
        ticket = make_ticket(status=status)
        service, repo = loaded_service(ticket)
        personnel = FakePersonnelRepository()

        with pytest.raises(AlreadyClosedError) as exc_info:
            asyncio.run(self.coordinator(service, personnel).assign(ticket, 10, Role.ADMINISTRATOR))

        assert isinstance(exc_info.value, TerminalStateError)
        assert personnel.calls == 0
        assert repo.count("set_assignee") == 0

    @pytest.mark.parametrize("role", [Role.REQUESTER, Role.TECHNICIAN])
    def test_only_administrators_may_assign(self, role):
        service, repo = loaded_service()
        personnel = FakePersonnelRepository()

        with pytest.raises(PermissionDeniedError):
            asyncio.run(self.coordinator(service, personnel).assign(service.get(1), 10, role))

        assert personnel.calls == 0
        assert repo.count("set_assignee") == 0
        assert service.get(1).status is TicketStatus.PENDING
        assert service.get(1).assigned_technician_id is None

    def test_unknown_technician_raises_not_found(self):
        service, repo = loaded_service()

        with pytest.raises(NotFoundError):
            asyncio.run(self.coordinator(service).assign(service.get(1), 77, Role.ADMINISTRATOR))

        assert repo.count("set_assignee") == 0
        assert service.get(1).status is TicketStatus.PENDING

    @pytest.mark.parametrize("technician_id", [None, ""])
    def test_missing_technician_selection_is_validation_error(self, technician_id):
        service, _ = loaded_service()

        with pytest.raises(ValidationError):
            asyncio.run(self.coordinator(service).assign(service.get(1), technician_id, Role.ADMINISTRATOR))

    def test_string_technician_id_from_picker_is_accepted(self):
        service, _ = loaded_service()

        assigned = asyncio.run(self.coordinator(service).assign(service.get(1), "11", Role.ADMINISTRATOR))

        assert assigned.assigned_technician_id == 11

    def test_failed_assignment_leaves_cache_untouched(self):
        service, repo = loaded_service()
        repo.errors["set_assignee"] = NetworkError("down")

        with pytest.raises(NetworkError):
            asyncio.run(self.coordinator(service).assign(service.get(1), 10, Role.ADMINISTRATOR))

        cached = service.get(1)
        assert cached.status is TicketStatus.PENDING
        assert cached.assigned_technician_id is None

    def test_roster_is_cached_until_ttl_expires(self):
        now = [0.0]
        service, _ = loaded_service()
        personnel = FakePersonnelRepository()
        coordinator = AssignmentCoordinator(
            service, personnel, roster_cache=LRUCache(max_size=1, ttl_seconds=60, clock=lambda: now[0])
        )

        async def scenario():
            await coordinator.roster()
            await coordinator.roster()
            now[0] = 61.0
            await coordinator.roster()
            await coordinator.roster(refresh=True)

        asyncio.run(scenario())

        assert personnel.calls == 3

    def test_plan_assignment_is_pure(self):
        ticket = make_ticket()
        roster = FakePersonnelRepository().technicians

        planned = AssignmentCoordinator.plan_assignment(ticket, 11, roster)

        assert planned.status is TicketStatus.ASSIGNED
        assert planned.assigned_technician_id == 11
        assert ticket.status is TicketStatus.PENDING
        assert ticket.assigned_technician_id is None
