"""Per-ticket in-flight guard for mutating requests."""

from contextlib import contextmanager
from typing import Iterator, Set

from helpdesk_sync.utils.error_handling import ConcurrentMutationError


class InFlightRegistry:
    """
    Tracks which tickets have a status or assignment request outstanding.

    This is a per-ticket mutex, not a global lock: a pending update on one
    ticket never blocks controls for another.
    """

    def __init__(self):
        self._busy: Set[int] = set()

    def is_busy(self, ticket_id: int) -> bool:
        return ticket_id in self._busy

    @contextmanager
    def hold(self, ticket_id: int) -> Iterator[None]:
        """Mark ``ticket_id`` busy for the duration of the block."""
        if ticket_id in self._busy:
            raise ConcurrentMutationError(ticket_id)
        self._busy.add(ticket_id)
        try:
            yield
        finally:
            self._busy.discard(ticket_id)
