"""
Open ticket view.

Binds the message sync, scroll attention and notification badge to one
ticket for as long as the view is open, and turns user actions into inline
feedback. Use it as an async context manager so polling is always released:

    async with client.ticket_view(42) as view:
        await view.send_message("Any update?")
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple

from helpdesk_sync.config.settings import Settings
from helpdesk_sync.models.message import Message
from helpdesk_sync.models.response import ActionFeedback
from helpdesk_sync.models.session import SessionContext
from helpdesk_sync.models.ticket import Technician, Ticket, TicketStatus
from helpdesk_sync.services.assignment_service import AssignmentCoordinator
from helpdesk_sync.services.message_sync import MessageThreadSync
from helpdesk_sync.services.notification_counter import NotificationCounter
from helpdesk_sync.services.scroll_attention import ScrollAttentionController
from helpdesk_sync.services.ticket_service import TicketService
from helpdesk_sync.utils.error_handling import HelpdeskError, to_feedback
from helpdesk_sync.utils.logging_config import get_logger

logger = get_logger(__name__)

MESSAGE_CONTROL = "message"
STATUS_CONTROL = "status"
ASSIGNMENT_CONTROL = "assignment"


class TicketView:
    """Everything bound to one open ticket."""

    def __init__(
        self,
        ticket_id: int,
        session: SessionContext,
        tickets: TicketService,
        assignments: AssignmentCoordinator,
        settings: Optional[Settings] = None,
        notifications: Optional[NotificationCounter] = None,
        scroll_to_bottom: Optional[Callable[[], None]] = None,
    ):
        self.ticket_id = ticket_id
        self.session = session
        self.tickets = tickets
        self.assignments = assignments
        self.settings = settings or Settings()
        self.notifications = notifications
        self.scroll = ScrollAttentionController(
            scroll_to_bottom,
            pin_threshold_px=self.settings.pin_threshold_px,
            affordance_threshold_px=self.settings.affordance_threshold_px,
        )
        self.thread: Optional[MessageThreadSync] = None
        self.feedback: Dict[str, ActionFeedback] = {}
        self._releases: List[Callable[[], None]] = []

    @property
    def is_open(self) -> bool:
        return self.thread is not None and not self.thread.closed

    @property
    def ticket(self) -> Ticket:
        return self.tickets.get(self.ticket_id)

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self.thread.messages if self.thread is not None else ()

    @property
    def controls_disabled(self) -> bool:
        """Status/assignment controls are disabled while a mutation is pending."""
        return self.tickets.is_busy(self.ticket_id)

    @property
    def unread_count(self) -> int:
        return self.notifications.unread_count if self.notifications else 0

    async def open(self) -> "TicketView":
        """Load the ticket and start polling."""
        if self.thread is not None:
            return self
        ticket = await self.tickets.load(self.ticket_id)
        self.thread = MessageThreadSync(
            ticket,
            self.tickets.repository,
            interval_seconds=self.settings.message_poll_seconds,
        )
        self._releases.append(self.thread.subscribe(self.scroll.on_thread_update))
        self._releases.append(self.tickets.on_change(self._on_ticket_change))
        self.thread.start()
        if self.notifications is not None:
            self._releases.append(self.notifications.acquire())
        logger.info("Ticket view opened", extra={"ticket_id": self.ticket_id})
        return self

    async def close(self) -> None:
        """Stop polling and release every binding. Safe to call twice."""
        thread, self.thread = self.thread, None
        try:
            if thread is not None:
                await thread.aclose()
        finally:
            releases, self._releases = self._releases, []
            for release in releases:
                release()
        logger.info("Ticket view closed", extra={"ticket_id": self.ticket_id})

    async def __aenter__(self) -> "TicketView":
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def allowed_statuses(self) -> FrozenSet[TicketStatus]:
        return self.tickets.state_machine.allowed_transitions(self.ticket, self.session.role)

    async def technicians(self, refresh: bool = False) -> List[Technician]:
        return await self.assignments.roster(refresh=refresh)

    async def send_message(self, body: str) -> ActionFeedback:
        thread = self._require_thread()
        return await self._run(MESSAGE_CONTROL, thread.send(body), "Message sent")

    async def change_status(self, status: TicketStatus) -> ActionFeedback:
        return await self._run(
            STATUS_CONTROL,
            self.tickets.change_status(self.ticket_id, status, self.session.role),
            "Status updated",
        )

    async def assign(self, technician_id: int) -> ActionFeedback:
        async def action() -> None:
            await self.assignments.assign(self.ticket, technician_id, self.session.role)

        return await self._run(ASSIGNMENT_CONTROL, action(), "Technician assigned")

    def can_assign(self) -> bool:
        return self.tickets.state_machine.can_assign(self.session.role)

    def dismiss(self, control: str) -> None:
        feedback = self.feedback.get(control)
        if feedback is not None:
            feedback.dismiss()

    def scroll_to_bottom(self) -> None:
        self.scroll.scroll_to_bottom()

    async def refresh_messages(self) -> None:
        await self._require_thread().poll_once()

    def _require_thread(self) -> MessageThreadSync:
        if self.thread is None:
            raise RuntimeError(f"Ticket view {self.ticket_id} is not open")
        return self.thread

    def _on_ticket_change(self, ticket: Ticket) -> None:
        if self.thread is not None and ticket.id == self.ticket_id:
            self.thread.bind_ticket(ticket)

    async def _run(
        self, control: str, action: Awaitable[object], success_message: str
    ) -> ActionFeedback:
        try:
            await action
        except HelpdeskError as exc:
            logger.warning(
                "Ticket action failed",
                extra={
                    "ticket_id": self.ticket_id,
                    "control": control,
                    "kind": exc.kind,
                    "error": str(exc),
                },
            )
            feedback = to_feedback(control, exc)
        else:
            feedback = ActionFeedback.success(control, success_message)
        self.feedback[control] = feedback
        return feedback
