from __future__ import annotations

import logging
from typing import Optional

from config.settings import get_settings
from pipelines.errors import TransientHostFailure
from pipelines.runner import RunContext


logger = logging.getLogger(__name__)


class WaitForContent:
    name = "wait_for_content"

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else get_settings().wait_timeout_seconds

    async def run(self, ctx: RunContext) -> RunContext:
        ready = await ctx.page.wait_for(ctx.source.item_locators(), self.timeout_seconds)
        if not ready:
            raise TransientHostFailure(f"No {ctx.kind} items rendered within {self.timeout_seconds}s")
        ctx.total_known = await ctx.source.prepare(ctx.page)
        if ctx.total_known is not None:
            ctx.log(logger, step=self.name).info("Page announces %d items", ctx.total_known)
        return ctx
