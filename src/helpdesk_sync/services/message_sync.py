"""
Message thread synchronization.

The backend only exposes the full message list of a ticket, so the thread is
kept fresh by polling that snapshot and merging it into the local log. Each
poll carries a sequence number; a result that arrives after a newer poll was
already applied is discarded untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from helpdesk_sync.models.message import Message
from helpdesk_sync.models.ticket import Ticket
from helpdesk_sync.repositories.ticket_repo import TicketRepository
from helpdesk_sync.utils.error_handling import (
    HelpdeskError,
    StaleResponseError,
    TerminalStateError,
)
from helpdesk_sync.utils.logging_config import get_logger
from helpdesk_sync.utils.polling import PollHandle
from helpdesk_sync.utils.validators import require_text

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 4.0


@dataclass(frozen=True)
class ThreadUpdate:
    """Result of applying one snapshot to the log."""

    ticket_id: int
    seq: int
    new_ids: Tuple[int, ...]
    previous_count: int
    messages: Tuple[Message, ...]

    @property
    def has_new(self) -> bool:
        return bool(self.new_ids)


ThreadListener = Callable[[ThreadUpdate], None]


def merge_snapshot(
    current: Sequence[Message], snapshot: Iterable[Message]
) -> Tuple[Tuple[Message, ...], Tuple[int, ...]]:
    """
    Merge ``snapshot`` into ``current`` by id.

    Snapshot values win for ids present in both. Returns the merged log sorted
    by ``(sent_at, id)`` and the ids that were not in ``current``, in log order.
    """
    merged = {message.id: message for message in current}
    known = set(merged)
    for message in snapshot:
        merged[message.id] = message
    log = tuple(sorted(merged.values(), key=lambda m: m.sort_key))
    new_ids = tuple(m.id for m in log if m.id not in known)
    return log, new_ids


class MessageThreadSync:
    """Sole writer of the message log for one open ticket."""

    def __init__(
        self,
        ticket: Ticket,
        repository: TicketRepository,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self._ticket = ticket
        self.repository = repository
        self.interval_seconds = interval_seconds
        self._log: Tuple[Message, ...] = ()
        self._issued_seq = 0
        self._applied_seq = 0
        self._closed = False
        self._handle: Optional[PollHandle] = None
        self._listeners: List[ThreadListener] = []

    @property
    def ticket(self) -> Ticket:
        return self._ticket

    @property
    def ticket_id(self) -> int:
        return self._ticket.id

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Current log. Always a complete, sorted snapshot."""
        return self._log

    @property
    def closed(self) -> bool:
        return self._closed

    def bind_ticket(self, ticket: Ticket) -> None:
        """Refresh the cached ticket (e.g. after a confirmed status change)."""
        if ticket.id != self.ticket_id:
            raise ValueError(
                f"Sync for ticket {self.ticket_id} cannot rebind to ticket {ticket.id}"
            )
        self._ticket = ticket

    def subscribe(self, listener: ThreadListener) -> Callable[[], None]:
        """Call ``listener`` after every applied update that changed the log."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> PollHandle:
        """Begin polling (first tick immediately). Returns the owning handle."""
        if self._closed:
            raise RuntimeError(f"Message sync for ticket {self.ticket_id} is closed")
        if self._handle is None:
            self._handle = PollHandle(
                f"messages:{self.ticket_id}",
                self.poll_once,
                self.interval_seconds,
                run_immediately=True,
            ).start()
        return self._handle

    def close(self) -> None:
        """Stop polling; responses still in flight will be ignored."""
        self._closed = True
        self._listeners.clear()
        if self._handle is not None:
            self._handle.close()

    async def aclose(self) -> None:
        """Stop polling and wait for the loop task to unwind."""
        self.close()
        if self._handle is not None:
            await self._handle.aclose()

    async def poll_once(self) -> Optional[ThreadUpdate]:
        """
        Fetch one snapshot and apply it.

        Poll failures are logged and swallowed: the next tick retries. Stale
        results are dropped silently. Returns the applied update, if any.
        """
        if self._closed:
            return None
        self._issued_seq += 1
        seq = self._issued_seq
        try:
            snapshot = await self.repository.list_messages(self.ticket_id)
        except HelpdeskError as exc:
            logger.warning(
                "Message poll failed",
                extra={"ticket_id": self.ticket_id, "seq": seq, "error": str(exc)},
            )
            return None

        try:
            return self.apply_snapshot(seq, snapshot)
        except StaleResponseError as exc:
            logger.debug(
                "Stale message snapshot discarded",
                extra={"ticket_id": self.ticket_id, "seq": exc.seq, "applied_seq": exc.applied_seq},
            )
            return None

    def apply_snapshot(
        self, seq: int, snapshot: Iterable[Message]
    ) -> Optional[ThreadUpdate]:
        """
        Merge a snapshot fetched by poll ``seq``.

        Raises StaleResponseError when a later poll was already applied.
        Returns None without touching the log once the sync is closed.
        """
        if self._closed:
            return None
        if seq < self._applied_seq:
            raise StaleResponseError(seq, self._applied_seq)

        previous = self._log
        log, new_ids = merge_snapshot(previous, (self._owned(m) for m in snapshot))
        # Single assignment: readers see the old log or the new one, never a mix.
        self._log = log
        self._applied_seq = seq

        update = ThreadUpdate(
            ticket_id=self.ticket_id,
            seq=seq,
            new_ids=new_ids,
            previous_count=len(previous),
            messages=log,
        )
        if log != previous:
            if new_ids:
                logger.info(
                    "New messages merged",
                    extra={"ticket_id": self.ticket_id, "seq": seq, "count": len(new_ids)},
                )
            for listener in list(self._listeners):
                listener(update)
        return update

    async def send(self, body: str) -> Optional[Message]:
        """
        Post a message to the bound ticket.

        The sent message is not inserted locally; it shows up through the
        follow-up poll like any other. Returns the backend's echo of the
        message when it sends one. NetworkError propagates and is not retried.
        """
        text = require_text(body, "message")
        if self._ticket.is_terminal:
            raise TerminalStateError(
                f"Ticket {self.ticket_id} is {self._ticket.status.value}; "
                "messages are locked"
            )

        echoed = await self.repository.post_message(self.ticket_id, text)
        logger.info("Message sent", extra={"ticket_id": self.ticket_id, "length": len(text)})
        await self.poll_once()
        return self._owned(echoed) if echoed is not None else None

    def _owned(self, message: Message) -> Message:
        if message.ticket_id is None:
            return message.model_copy(update={"ticket_id": self.ticket_id})
        return message
