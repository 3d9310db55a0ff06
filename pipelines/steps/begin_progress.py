from __future__ import annotations

from pipelines.runner import RunContext


class BeginProgress:
    name = "begin_progress"

    def __init__(self, resume: bool = False) -> None:
        self.resume = resume

    async def run(self, ctx: RunContext) -> RunContext:
        progress = await ctx.progress_store.begin(self.resume)
        if ctx.total_known is not None:
            progress = progress.model_copy(update={"total_known": ctx.total_known})
            await ctx.progress_store.save(progress)
        ctx.progress = progress
        return ctx
