from __future__ import annotations

import asyncio


class ScrapeControl:
    """Pause/stop signals for one acquisition run.

    Each run gets its own instance, so signalling one run never affects another.
    Checks are cooperative: the controller polls at loop-iteration granularity.
    """

    def __init__(self) -> None:
        self._paused = False
        self._stopped = False

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def stopped(self) -> bool:
        return self._stopped

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def stop(self) -> None:
        self._stopped = True

    async def wait_while_paused(self, poll_seconds: float) -> bool:
        """Block while paused. Returns False if a stop arrived meanwhile."""
        while self._paused and not self._stopped:
            await asyncio.sleep(poll_seconds)
        return not self._stopped
