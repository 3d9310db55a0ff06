from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Optional

from config.settings import Settings, get_settings
from models import AcquisitionResult, ProgressUpdate
from pipelines.control import ScrapeControl
from pipelines.errors import TransientHostFailure
from pipelines.progress import ProgressStore, transition
from pipelines.runner import Pipeline, RunContext
from pipelines.steps import BeginProgress, ExtractAndPersist, FinishRun, LoadItems, WaitForContent
from ports.kv import KeyValuePort
from ports.page import HostPage
from ports.repos import GraphStorePort
from ports.serializer import SerializerPort
from ports.source import AcquisitionSourcePort


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], Any]


class AcquisitionController:
    """Turns a partially-loaded host page into durably stored graph records.

    The store, key/value progress store and serializer are injected. Every
    submitted run gets its own ScrapeControl, created at submission time; the
    pause/resume/stop methods signal the most recently submitted run, even while
    it still waits in the serializer queue.
    """

    def __init__(
        self,
        store: GraphStorePort,
        kv: KeyValuePort,
        serializer: SerializerPort,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.kv = kv
        self.serializer = serializer
        self.settings = settings or get_settings()
        self.control = ScrapeControl()

    # Cooperative signals
    def pause(self) -> None:
        logger.info("Pause requested")
        self.control.pause()

    def resume(self) -> None:
        logger.info("Resume requested")
        self.control.resume()

    def stop(self) -> None:
        logger.info("Stop requested")
        self.control.stop()

    def new_control(self) -> ScrapeControl:
        self.control = ScrapeControl()
        return self.control

    def _pipeline(self, resume: bool) -> Pipeline:
        s = self.settings
        return Pipeline(
            [
                WaitForContent(s.wait_timeout_seconds),
                BeginProgress(resume),
                LoadItems(
                    s.max_scrolls,
                    s.no_change_threshold,
                    s.scroll_min_delay_seconds,
                    s.scroll_max_delay_seconds,
                    s.pause_poll_seconds,
                ),
                ExtractAndPersist(s.batch_size, s.pause_poll_seconds),
                FinishRun(),
            ]
        )

    async def _mark_error(self, ctx: RunContext, error: BaseException) -> None:
        if ctx.progress is None or ctx.progress.status != "running":
            return
        try:
            ctx.progress = transition(ctx.progress, "error", error=str(error))
            await ctx.progress_store.save(ctx.progress)
        except Exception:
            ctx.log(logger).error("Failed to persist error state", exc_info=True)

    async def _attempt(
        self,
        source: AcquisitionSourcePort,
        page: HostPage,
        resume: bool,
        on_progress: Optional[ProgressCallback],
        control: ScrapeControl,
    ) -> AcquisitionResult:
        ctx = RunContext(
            source=source,
            page=page,
            store=self.store,
            progress_store=ProgressStore(self.kv, source.kind),
            control=control,
            run_id=uuid.uuid4().hex[:12],
            on_progress=on_progress,
        )
        log = ctx.log(logger)
        try:
            ctx = await self._pipeline(resume).run(ctx)
        except TransientHostFailure as e:
            if ctx.progress is not None:
                await self._mark_error(ctx, e)
                raise
            log.warning("No content: %s", e)
            return AcquisitionResult(kind=ctx.kind, outcome="empty", run_id=ctx.run_id)
        except Exception as e:
            log.error("Acquisition failed", exc_info=True, extra={"error": type(e).__name__})
            await self._mark_error(ctx, e)
            raise

        if ctx.progress.status == "paused":
            outcome = "paused"
        elif not ctx.seen:
            outcome = "empty"
        else:
            outcome = "complete"
        return AcquisitionResult(
            kind=ctx.kind,
            outcome=outcome,
            scraped=ctx.scraped,
            skipped=ctx.skipped,
            total_known=ctx.total_known,
            run_id=ctx.run_id,
        )

    async def start(
        self,
        source: AcquisitionSourcePort,
        page: HostPage,
        resume: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        control: Optional[ScrapeControl] = None,
    ) -> AcquisitionResult:
        """Run one acquisition. Resuming continues a non-complete progress record; otherwise it is discarded."""
        control = control or self.new_control()
        return await self._attempt(source, page, resume, on_progress, control)

    async def run_with_retry(
        self,
        source: AcquisitionSourcePort,
        page: HostPage,
        resume: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        max_retries: Optional[int] = None,
        control: Optional[ScrapeControl] = None,
    ) -> AcquisitionResult:
        """Retry the whole run with exponential backoff.

        Raised errors are always retried. An empty outcome is retried only when
        RETRY_ON_EMPTY is on. Later attempts resume from the persisted cursor.
        """
        attempts = max_retries if max_retries is not None else self.settings.max_retries
        attempts = max(attempts, 1)
        control = control or self.new_control()
        result: Optional[AcquisitionResult] = None

        for attempt in range(1, attempts + 1):
            last = attempt == attempts
            try:
                result = await self._attempt(source, page, resume or attempt > 1, on_progress, control)
            except Exception as e:
                if last or control.stopped:
                    logger.error("All %d attempts failed", attempt, extra={"kind": source.kind, "error": str(e)})
                    raise
                delay = self.settings.retry_base_seconds * (2 ** attempt)
                logger.warning(
                    "Attempt %d/%d failed, retrying in %.1fs", attempt, attempts, delay,
                    extra={"kind": source.kind, "error": str(e)},
                )
                await asyncio.sleep(delay)
                continue

            result.attempts = attempt
            if result.outcome != "empty" or last or control.stopped or not self.settings.retry_on_empty:
                return result
            delay = self.settings.retry_base_seconds * (2 ** attempt)
            logger.warning(
                "Attempt %d/%d found nothing, retrying in %.1fs", attempt, attempts, delay,
                extra={"kind": source.kind},
            )
            await asyncio.sleep(delay)

        return result

    async def run_safe(
        self,
        source: AcquisitionSourcePort,
        page: HostPage,
        resume: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        max_retries: Optional[int] = None,
    ) -> AcquisitionResult:
        """Submit the whole retrying run to the serializer so only one acquisition runs at a time.

        The run's control exists from submission, so a stop or pause issued while
        the run is still queued takes effect once it starts.
        """
        control = self.new_control()
        return await self.serializer.enqueue(
            lambda: self.run_with_retry(source, page, resume, on_progress, max_retries, control)
        )
