"""Unread notification badge, polled independently of any ticket."""

from __future__ import annotations

import functools
from typing import Callable, List, Optional, Set

from helpdesk_sync.models.notification import NotificationPage
from helpdesk_sync.repositories.notification_repo import NotificationRepository
from helpdesk_sync.utils.error_handling import HelpdeskError
from helpdesk_sync.utils.logging_config import get_logger
from helpdesk_sync.utils.polling import PollHandle

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0

CountListener = Callable[[int], None]


class NotificationCounter:
    """
    Keeps ``unread_count`` current.

    Views bind to the counter with ``acquire()``; it polls while at least one
    binding is held. Mark-read actions recount immediately instead of waiting
    for the next tick.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.repository = repository
        self.interval_seconds = interval_seconds
        self._unread = 0
        self._issued_seq = 0
        self._applied_seq = 0
        self._bindings: Set[int] = set()
        self._next_binding = 0
        self._generation = 0
        self._handle: Optional[PollHandle] = None
        self._listeners: List[CountListener] = []

    @property
    def unread_count(self) -> int:
        return self._unread

    @property
    def polling(self) -> bool:
        return self._handle is not None and self._handle.active

    def subscribe(self, listener: CountListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def acquire(self) -> Callable[[], None]:
        """Bind a view to the counter; call the returned function to release it."""
        self._next_binding += 1
        binding = self._next_binding
        self._bindings.add(binding)
        if self._handle is None:
            self._generation += 1
            self._handle = PollHandle(
                "notifications",
                functools.partial(self.refresh, generation=self._generation),
                self.interval_seconds,
                run_immediately=True,
            ).start()

        def release() -> None:
            # Releases handed out before close() no longer own a binding.
            if binding not in self._bindings:
                return
            self._bindings.discard(binding)
            if not self._bindings:
                self._stop()

        return release

    def close(self) -> None:
        """Drop every binding and stop polling."""
        self._bindings.clear()
        self._stop()

    def _stop(self) -> None:
        # Bumping the generation orphans any tick still awaiting the backend.
        self._generation += 1
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    async def refresh(self, generation: Optional[int] = None) -> int:
        """
        Recount unread notifications.

        ``generation`` is set by the poll loop; a tick whose loop has since
        been stopped is ignored on arrival. Failures are logged, never raised.
        """
        self._issued_seq += 1
        seq = self._issued_seq
        try:
            count = await self.repository.unread_count()
        except HelpdeskError as exc:
            logger.warning(
                "Unread count poll failed", extra={"seq": seq, "error": str(exc)}
            )
            return self._unread

        if generation is not None and generation != self._generation:
            return self._unread
        if seq < self._applied_seq:
            logger.debug(
                "Stale unread count discarded",
                extra={"seq": seq, "applied_seq": self._applied_seq},
            )
            return self._unread

        self._applied_seq = seq
        count = max(0, count)
        if count != self._unread:
            self._unread = count
            for listener in list(self._listeners):
                listener(count)
        return self._unread

    async def mark_read(self, notification_id: int) -> int:
        """Mark one notification read, then recount. Errors propagate."""
        await self.repository.mark_read(notification_id)
        logger.info("Notification marked read", extra={"notification_id": notification_id})
        return await self.refresh()

    async def mark_all_read(self) -> int:
        """Mark every notification read, then recount. Errors propagate."""
        await self.repository.mark_all_read()
        logger.info("All notifications marked read")
        return await self.refresh()

    async def list_notifications(
        self, page: int = 0, size: int = 10, unread_only: bool = False
    ) -> NotificationPage:
        return await self.repository.list_page(page=page, size=size, unread_only=unread_only)
