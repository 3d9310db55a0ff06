from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from models import ScrapeProgress
from pipelines.errors import InvalidTransition, ProgressCorruption
from ports.kv import KeyValuePort


logger = logging.getLogger(__name__)

_ALLOWED = {
    "running": {"paused", "complete", "error"},
    "paused": {"running"},
    "complete": set(),
    "error": set(),
}


def transition(progress: ScrapeProgress, status: str, error: Optional[str] = None) -> ScrapeProgress:
    if status not in _ALLOWED[progress.status]:
        raise InvalidTransition(f"{progress.kind}: {progress.status} -> {status} is not allowed")
    return progress.model_copy(update={"status": status, "error": error})


def record_batch(progress: ScrapeProgress, saved: int, last_id: Optional[str]) -> ScrapeProgress:
    """Advance counters after a durable batch write. Counters never move backwards."""
    return progress.model_copy(
        update={
            "total_scraped": progress.total_scraped + max(saved, 0),
            "last_scraped_id": last_id or progress.last_scraped_id,
            "last_save_at": datetime.now(timezone.utc).isoformat(),
        }
    )


class ProgressStore:
    """One durable progress record per acquisition kind, kept in the key/value store."""

    def __init__(self, kv: KeyValuePort, kind: str):
        self.kv = kv
        self.kind = kind
        self.key = f"{kind}_scrape_progress"

    async def load(self) -> Optional[ScrapeProgress]:
        try:
            raw = await self.kv.get(self.key)
            if raw is None:
                return None
            progress = ScrapeProgress.model_validate(raw)
        except (ValidationError, TypeError, ValueError) as e:
            raise ProgressCorruption(f"Stored progress for {self.kind} is malformed: {e}") from e
        if progress.kind != self.kind:
            raise ProgressCorruption(f"Stored progress under {self.key} belongs to {progress.kind}")
        return progress

    async def save(self, progress: ScrapeProgress) -> None:
        await self.kv.set(self.key, progress.model_dump())

    async def clear(self) -> None:
        await self.kv.remove(self.key)

    async def begin(self, resume: bool) -> ScrapeProgress:
        """Start a run: continue a non-complete record when resuming, else start from zero."""
        prior: Optional[ScrapeProgress] = None
        if resume:
            try:
                prior = await self.load()
            except ProgressCorruption as e:
                logger.warning("Discarding stored progress: %s", e, extra={"kind": self.kind})
                prior = None

        if prior is not None and prior.status != "complete":
            logger.info(
                "Resuming %s from %d items (cursor=%s)",
                self.kind,
                prior.total_scraped,
                prior.last_scraped_id,
                extra={"kind": self.kind, "status": prior.status},
            )
            progress = ScrapeProgress(
                kind=self.kind,
                total_scraped=prior.total_scraped,
                last_scraped_id=prior.last_scraped_id,
                started_at=prior.started_at,
                last_save_at=prior.last_save_at,
                total_known=prior.total_known,
                status="running",
            )
        else:
            await self.clear()
            progress = ScrapeProgress(kind=self.kind)
        await self.save(progress)
        return progress
