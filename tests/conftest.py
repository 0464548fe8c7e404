"""
Pytest configuration and shared fakes.

Puts ``src/`` on sys.path so the suite runs from a plain checkout, pins the
environment the settings loader reads, and provides in-memory stand-ins for
the backend repositories so no test needs a network.
"""

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add src/ to sys.path if missing."""
    src_root = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

os.environ.setdefault("HELPDESK_ENVIRONMENT", "dev")
os.environ.setdefault("HELPDESK_API_URL", "http://helpdesk.test/api")

from helpdesk_sync.models.message import Message  # noqa: E402
from helpdesk_sync.models.session import Role, SessionContext  # noqa: E402
from helpdesk_sync.models.ticket import Technician, Ticket, TicketStatus  # noqa: E402

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_ticket(ticket_id=1, status=TicketStatus.PENDING, **overrides) -> Ticket:
    fields = dict(
        id=ticket_id,
        title="Printer on floor 2 is jammed",
        description="Paper stuck in tray 3",
        status=status,
        category="Hardware",
        created_at=BASE_TIME,
    )
    fields.update(overrides)
    return Ticket(**fields)


def make_message(message_id, seconds=0, ticket_id=1, body=None, **overrides) -> Message:
    fields = dict(
        id=message_id,
        ticket_id=ticket_id,
        author_id=7,
        author_name="Ana",
        author_role="USUARIO",
        body=body or f"message {message_id}",
        sent_at=BASE_TIME + timedelta(seconds=seconds),
    )
    fields.update(overrides)
    return Message(**fields)


class FakeTicketRepository:
    """In-memory Ticket Service.

    ``snapshots`` is consumed one entry per ``list_messages`` call, the last
    entry repeating. An entry may be a list of messages, an exception to
    raise, or an asyncio.Future resolving to either.
    """

    def __init__(self, tickets=None, snapshots=None):
        self.tickets = list(tickets or [])
        self.snapshots = list(snapshots or [])
        self.calls = []
        self.errors = {}
        self.gate = None
        self.echo = None

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.errors:
            raise self.errors[name]

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    async def list_visible(self):
        self._record("list_visible")
        return list(self.tickets)

    async def set_status(self, ticket_id, status):
        self._record("set_status", ticket_id, status)
        if self.gate is not None:
            await self.gate.wait()

    async def set_assignee(self, ticket_id, technician_id):
        self._record("set_assignee", ticket_id, technician_id)
        if self.gate is not None:
            await self.gate.wait()

    async def list_messages(self, ticket_id):
        self._record("list_messages", ticket_id)
        if not self.snapshots:
            return []
        item = self.snapshots.pop(0) if len(self.snapshots) > 1 else self.snapshots[0]
        if isinstance(item, asyncio.Future):
            item = await item
        if isinstance(item, BaseException):
            raise item
        return list(item)

    async def post_message(self, ticket_id, body):
        self._record("post_message", ticket_id, body)
        return self.echo


class FakeNotificationRepository:
    """In-memory Notification Service backed by a set of unread ids."""

    def __init__(self, unread_ids=(1, 2, 3)):
        self.unread_ids = set(unread_ids)
        self.calls = []
        self.count_error = None

    async def unread_count(self):
        self.calls.append(("unread_count",))
        if self.count_error is not None:
            raise self.count_error
        return len(self.unread_ids)

    async def mark_read(self, notification_id):
        self.calls.append(("mark_read", notification_id))
        self.unread_ids.discard(notification_id)

    async def mark_all_read(self):
        self.calls.append(("mark_all_read",))
        self.unread_ids.clear()

    async def list_page(self, page=0, size=10, unread_only=False):
        from helpdesk_sync.models.notification import Notification, NotificationPage

        self.calls.append(("list_page", page, size, unread_only))
        items = [
            Notification(id=i, title=f"Ticket update {i}", read=False)
            for i in sorted(self.unread_ids)
        ]
        return NotificationPage(content=items[:size], total_pages=1, page=page, size=size)


class FakePersonnelRepository:
    def __init__(self, technicians=None):
        self.technicians = list(
            technicians
            if technicians is not None
            else [
                Technician(id=10, name="Luis Tech", email="luis@example.com"),
                Technician(id=11, name="Marta Tech", email="marta@example.com"),
            ]
        )
        self.calls = 0

    async def list_technicians(self):
        self.calls += 1
        return list(self.technicians)


@pytest.fixture
def ticket_repo():
    return FakeTicketRepository(tickets=[make_ticket()])


@pytest.fixture
def notification_repo():
    return FakeNotificationRepository()


@pytest.fixture
def personnel_repo():
    return FakePersonnelRepository()


@pytest.fixture
def admin_session():
    return SessionContext(
        base_url="http://helpdesk.test/api", token="secret-token", role=Role.ADMINISTRATOR, user_id=1
    )
