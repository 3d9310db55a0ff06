from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

from models import ProgressUpdate, ScrapeProgress
from pipelines.control import ScrapeControl
from pipelines.progress import ProgressStore
from ports.page import HostPage
from ports.repos import GraphStorePort
from ports.source import AcquisitionSourcePort
from utils.logging_setup import RunLogger, init_logging, run_logger


logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    source: AcquisitionSourcePort
    page: HostPage
    store: GraphStorePort
    progress_store: ProgressStore
    progress: Optional[ScrapeProgress] = None
    control: ScrapeControl = field(default_factory=ScrapeControl)
    run_id: str = ""
    on_progress: Optional[Callable[[ProgressUpdate], Any]] = None
    total_known: Optional[int] = None
    items: list = field(default_factory=list)
    scraped: int = 0
    skipped: int = 0
    seen: set = field(default_factory=set)
    meta: dict = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return self.source.kind

    def log(self, base: logging.Logger, **fields: Any) -> RunLogger:
        """`base` with this run's kind and id (plus `fields`) attached to every record."""
        return run_logger(base, self.kind, self.run_id).bind(**fields)

    def notify(self, scraped: int) -> None:
        """Invoke the progress callback; callback failures never affect the run."""
        if not self.on_progress:
            return
        update = ProgressUpdate(
            kind=self.kind,
            scraped=scraped,
            total=self.total_known,
            status=self.progress.status if self.progress else "running",
            last_saved=self.progress.total_scraped if self.progress else 0,
        )
        try:
            self.on_progress(update)
        except Exception:
            self.log(logger).debug("Progress callback failed", exc_info=True)


class Step(Protocol):
    name: str

    async def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    async def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            started = time.perf_counter()
            ctx = await step.run(ctx)
            ctx.log(logger, step=step.name).debug(
                "Step finished", extra={"duration_ms": int((time.perf_counter() - started) * 1000)}
            )
        return ctx
