from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


ConnectionStatus = Literal["connected", "pending", "not_contacted"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Experience(BaseModel):
    company: str
    title: str
    years: float | None = Field(default=None, ge=0)
    duration: str | None = None

    model_config = ConfigDict(extra="ignore")


class Profile(BaseModel):
    """Harvested profile fields. Only `name` is mandatory."""

    name: str
    headline: str | None = None
    location: str | None = None
    about: str | None = None
    avatar_url: str | None = None
    profile_url: str | None = None
    experience: list[Experience] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    mutual_connections: int = Field(default=0, ge=0)
    scraped_at: str = Field(default_factory=utc_now_iso)

    model_config = ConfigDict(extra="ignore")

    @property
    def current_company(self) -> str | None:
        if self.experience:
            return self.experience[0].company
        return None

    @property
    def current_role(self) -> str | None:
        if self.experience:
            return self.experience[0].title
        return self.headline

    @property
    def total_years(self) -> float:
        """Summed experience years; falls back to the number of positions when durations are unknown."""
        known = [e.years for e in self.experience if e.years is not None]
        if known:
            return float(sum(known))
        return float(len(self.experience))


class Node(BaseModel):
    """A harvested profile annotated with graph metadata."""

    id: str = Field(min_length=1)
    profile: Profile
    degree: int = Field(ge=1, le=3)
    match_score: float = Field(default=0, ge=0, le=100)
    activity_score: float | None = Field(default=None, ge=0, le=100)
    status: ConnectionStatus = "not_contacted"
    last_contacted_at: str | None = None

    model_config = ConfigDict(extra="ignore")
