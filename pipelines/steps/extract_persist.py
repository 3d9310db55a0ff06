from __future__ import annotations

import logging
from typing import Any, List, Optional

from config.settings import get_settings
from pipelines.progress import record_batch
from pipelines.runner import RunContext


logger = logging.getLogger(__name__)


class ExtractAndPersist:
    """Extract every loaded item, drop duplicates, and persist in fixed-size batches.

    After each durable batch the progress record is advanced and saved, then the
    progress callback fires. A stop request ends the loop; whatever is already
    batched is still written.
    """

    name = "extract_persist"

    def __init__(self, batch_size: Optional[int] = None, pause_poll_seconds: Optional[float] = None) -> None:
        s = get_settings()
        self.batch_size = batch_size if batch_size is not None else s.batch_size
        self.pause_poll = pause_poll_seconds if pause_poll_seconds is not None else s.pause_poll_seconds
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    async def _flush(self, ctx: RunContext, batch: List[Any], position: int) -> None:
        await ctx.source.persist(ctx.store, batch)
        last_id = ctx.source.record_id(batch[-1])
        ctx.scraped += len(batch)
        ctx.progress = record_batch(ctx.progress, len(batch), last_id)
        await ctx.progress_store.save(ctx.progress)
        ctx.log(logger, step=self.name, status=ctx.progress.status).info(
            "Batch of %d saved (%d total)", len(batch), ctx.progress.total_scraped
        )
        ctx.notify(position)

    async def run(self, ctx: RunContext) -> RunContext:
        batch: List[Any] = []
        duplicates = 0
        position = 0

        for element in ctx.items:
            # Returns immediately unless paused; False once a stop arrives
            if not await ctx.control.wait_while_paused(self.pause_poll):
                break
            position += 1

            try:
                record = ctx.source.extract(element)
            except Exception as e:  # stale or detached item
                ctx.log(logger, step=self.name).warning(
                    "Item %d could not be extracted: %s", position, e, extra={"error": type(e).__name__}
                )
                record = None
            if record is None:
                ctx.skipped += 1
                continue

            record_id = ctx.source.record_id(record)
            if record_id in ctx.seen:
                duplicates += 1
                continue
            ctx.seen.add(record_id)

            if await ctx.source.exists(ctx.store, record):
                duplicates += 1
                continue

            batch.append(record)
            if len(batch) >= self.batch_size:
                await self._flush(ctx, batch, position)
                batch = []

        if batch:
            await self._flush(ctx, batch, position)

        ctx.meta["duplicates"] = duplicates
        ctx.meta["extracted"] = len(ctx.seen)
        return ctx
