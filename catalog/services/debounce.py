"""Cancellable timer for debounced search input."""

import asyncio
from typing import Callable, Optional

from ..utils.logger import get_catalog_logger


class SearchDebouncer:
    """
    Apply only the last value submitted within a quiet period.

    Each ``submit`` cancels the pending timer and starts a new one. A timer
    applies its value only if its generation is still current when it fires,
    so a superseded attempt can never overwrite a newer one even if its
    cancellation arrives late.
    """

    def __init__(self, delay_seconds: float, callback: Callable[[str], None]):
        self.delay_seconds = delay_seconds
        self.callback = callback
        self.logger = get_catalog_logger()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._pending: Optional[str] = None

    @property
    def pending(self) -> Optional[str]:
        """Value waiting for its timer, if any."""
        return self._pending

    def submit(self, text: str) -> None:
        """Schedule *text* to be applied after the quiet period."""
        self._cancel_timer()
        self._generation += 1
        self._pending = text

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to time against; apply straight away.
            self._apply(self._generation)
            return

        if self.delay_seconds <= 0:
            self._apply(self._generation)
            return

        self._task = loop.create_task(self._fire(self._generation))

    def flush(self) -> None:
        """Apply the pending value now instead of waiting for the timer."""
        if self._pending is None:
            return
        self._cancel_timer()
        self._apply(self._generation)

    def cancel(self) -> None:
        """Drop the pending value without applying it."""
        self._cancel_timer()
        self._generation += 1
        self._pending = None

    async def _fire(self, generation: int) -> None:
        await asyncio.sleep(self.delay_seconds)
        self._apply(generation)

    def _apply(self, generation: int) -> None:
        if generation != self._generation or self._pending is None:
            self.logger.debug("Discarding superseded search input")
            return
        text = self._pending
        self._pending = None
        self._task = None
        self.callback(text)

    def _cancel_timer(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
