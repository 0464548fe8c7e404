"""Auto-scroll versus "new messages" affordance for the message list."""

from __future__ import annotations

from typing import Callable, Optional

from helpdesk_sync.services.message_sync import ThreadUpdate

PIN_THRESHOLD_PX = 150
AFFORDANCE_THRESHOLD_PX = 100


class ScrollAttentionController:
    """
    Decide whether newly arrived messages scroll into view.

    A viewer within ``pin_threshold_px`` of the bottom is following the
    conversation and gets scrolled along. Anyone further up keeps their
    position and sees the affordance instead. Scroll events toggle the
    affordance on their own, tighter threshold so it does not flicker while
    the viewer hovers around the pin boundary.
    """

    def __init__(
        self,
        scroll_to_bottom: Optional[Callable[[], None]] = None,
        pin_threshold_px: int = PIN_THRESHOLD_PX,
        affordance_threshold_px: int = AFFORDANCE_THRESHOLD_PX,
    ):
        self._viewport_scroll = scroll_to_bottom
        self.pin_threshold_px = pin_threshold_px
        self.affordance_threshold_px = affordance_threshold_px
        self.distance_from_bottom = 0.0
        self.show_affordance = False

    @property
    def pinned_to_bottom(self) -> bool:
        return self.distance_from_bottom < self.pin_threshold_px

    def on_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> None:
        """Viewer scrolled; recompute the distance and the affordance."""
        self.distance_from_bottom = max(0.0, scroll_height - scroll_top - client_height)
        self.show_affordance = self.distance_from_bottom > self.affordance_threshold_px

    def on_thread_update(self, update: ThreadUpdate) -> bool:
        """React to a merged snapshot. Returns True when it scrolled."""
        if not update.has_new:
            return False
        if self.pinned_to_bottom or update.previous_count <= 1:
            self.scroll_to_bottom()
            return True
        self.show_affordance = True
        return False

    def scroll_to_bottom(self) -> None:
        """Jump to the newest message; always clears the affordance."""
        if self._viewport_scroll is not None:
            self._viewport_scroll()
        self.distance_from_bottom = 0.0
        self.show_affordance = False
