"""
Composition root: builds repositories and engines for one session.

Everything downstream receives the SessionContext explicitly; nothing reads
credentials from ambient state.
"""

from __future__ import annotations

from typing import Callable, Optional

import requests

from helpdesk_sync.config.settings import Settings
from helpdesk_sync.handlers.ticket_view import TicketView
from helpdesk_sync.models.session import SessionContext
from helpdesk_sync.repositories.http_client import HelpdeskHttpClient
from helpdesk_sync.repositories.notification_repo import NotificationRepository
from helpdesk_sync.repositories.personnel_repo import PersonnelRepository
from helpdesk_sync.repositories.ticket_repo import TicketRepository
from helpdesk_sync.services.assignment_service import AssignmentCoordinator
from helpdesk_sync.services.notification_counter import NotificationCounter
from helpdesk_sync.services.state_machine import TicketStateMachine
from helpdesk_sync.services.ticket_service import TicketService
from helpdesk_sync.utils.cache_service import LRUCache


class HelpdeskClient:
    """Session-scoped services shared by every ticket view."""

    def __init__(
        self,
        session: SessionContext,
        settings: Optional[Settings] = None,
        http: Optional[requests.Session] = None,
    ):
        self.session = session
        self.settings = settings or Settings()
        self.http = HelpdeskHttpClient(
            session, timeout_seconds=self.settings.request_timeout_seconds, http=http
        )
        self.ticket_repo = TicketRepository(self.http)
        self.notification_repo = NotificationRepository(self.http)
        self.personnel_repo = PersonnelRepository(self.http)

        self.state_machine = TicketStateMachine(
            allow_admin_reopen=self.settings.allow_admin_reopen
        )
        self.tickets = TicketService(self.ticket_repo, self.state_machine)
        self.assignments = AssignmentCoordinator(
            self.tickets,
            self.personnel_repo,
            roster_cache=LRUCache(
                max_size=1, ttl_seconds=self.settings.roster_cache_ttl_seconds
            ),
        )
        self.notifications = NotificationCounter(
            self.notification_repo,
            interval_seconds=self.settings.notification_poll_seconds,
        )

    def ticket_view(
        self, ticket_id: int, scroll_to_bottom: Optional[Callable[[], None]] = None
    ) -> TicketView:
        """Build (but do not open) the view for ``ticket_id``."""
        return TicketView(
            ticket_id,
            session=self.session,
            tickets=self.tickets,
            assignments=self.assignments,
            settings=self.settings,
            notifications=self.notifications,
            scroll_to_bottom=scroll_to_bottom,
        )

    def close(self) -> None:
        self.notifications.close()
        self.http.http.close()
