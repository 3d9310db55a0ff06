from __future__ import annotations

import logging

from pipelines.progress import transition
from pipelines.runner import RunContext


logger = logging.getLogger(__name__)


class FinishRun:
    name = "finish_run"

    async def run(self, ctx: RunContext) -> RunContext:
        status = "paused" if ctx.control.stopped else "complete"
        ctx.progress = transition(ctx.progress, status)
        await ctx.progress_store.save(ctx.progress)
        ctx.notify(ctx.scraped)
        ctx.log(logger, step=self.name, status=status).info(
            "Run %s: %d new, %d skipped",
            status,
            ctx.scraped,
            ctx.skipped,
        )
        return ctx
