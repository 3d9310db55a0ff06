from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from models.node import utc_now_iso


ProgressStatus = Literal["running", "paused", "complete", "error"]
Outcome = Literal["complete", "paused", "empty"]


class ScrapeProgress(BaseModel):
    """Durable checkpoint for one acquisition kind."""

    kind: str
    total_scraped: int = Field(default=0, ge=0)
    last_scraped_id: str | None = None
    started_at: str = Field(default_factory=utc_now_iso)
    last_save_at: str | None = None
    status: ProgressStatus = "running"
    total_known: int | None = Field(default=None, ge=0)
    error: str | None = None

    model_config = ConfigDict(extra="ignore")


class AcquisitionResult(BaseModel):
    """Non-fatal outcome of one acquisition run. Fatal failures are raised, never returned."""

    kind: str
    outcome: Outcome
    scraped: int = 0
    skipped: int = 0
    total_known: int | None = None
    attempts: int = 1
    run_id: str | None = None

    model_config = ConfigDict(extra="ignore")


class ProgressUpdate(BaseModel):
    """Payload handed to progress callbacks."""

    kind: str
    scraped: int
    total: int | None = None
    status: ProgressStatus
    last_saved: int = 0
