from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from config.settings import get_settings
from extraction.locators import query_all_fallback
from pipelines.runner import RunContext


logger = logging.getLogger(__name__)


class LoadItems:
    """Drive the host page's incremental loading until the item list stops growing."""

    name = "load_items"

    def __init__(
        self,
        max_scrolls: Optional[int] = None,
        no_change_threshold: Optional[int] = None,
        min_delay_seconds: Optional[float] = None,
        max_delay_seconds: Optional[float] = None,
        pause_poll_seconds: Optional[float] = None,
    ) -> None:
        s = get_settings()
        self.max_scrolls = max_scrolls if max_scrolls is not None else s.max_scrolls
        self.no_change_threshold = no_change_threshold if no_change_threshold is not None else s.no_change_threshold
        self.min_delay = min_delay_seconds if min_delay_seconds is not None else s.scroll_min_delay_seconds
        self.max_delay = max_delay_seconds if max_delay_seconds is not None else s.scroll_max_delay_seconds
        self.pause_poll = pause_poll_seconds if pause_poll_seconds is not None else s.pause_poll_seconds

    async def _count(self, ctx: RunContext) -> int:
        return len(query_all_fallback(await ctx.page.root(), ctx.source.item_locators()))

    async def run(self, ctx: RunContext) -> RunContext:
        log = ctx.log(logger, step=self.name)
        previous = await self._count(ctx)
        scrolls = 0
        no_change = 0

        while scrolls < self.max_scrolls and no_change < self.no_change_threshold:
            if not await ctx.control.wait_while_paused(self.pause_poll):
                log.info("Stop requested during loading")
                break

            await ctx.page.load_more()
            scrolls += 1
            await asyncio.sleep(random.uniform(self.min_delay, self.max_delay))

            current = await self._count(ctx)
            ctx.notify(current)
            if current == previous:
                no_change += 1
            else:
                no_change = 0
            previous = current

        if scrolls >= self.max_scrolls:
            log.warning("Reached scroll cap (%d)", self.max_scrolls)

        ctx.items = query_all_fallback(await ctx.page.root(), ctx.source.item_locators())
        ctx.meta["scrolls"] = scrolls
        log.info("Loaded %d items after %d scrolls", len(ctx.items), scrolls)
        return ctx
