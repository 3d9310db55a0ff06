from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class YearsRange(BaseModel):
    min: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class SearchFilters(BaseModel):
    company: str | None = None
    location: str | None = None
    role: str | None = None
    years_experience: YearsRange | None = None
    connection_degree: list[int] | None = None

    model_config = ConfigDict(extra="forbid")

    def is_empty(self) -> bool:
        return not any([self.company, self.location, self.role, self.years_experience, self.connection_degree])


class ParsedQuery(BaseModel):
    """Parser output: residual free text plus structured filters."""

    query: str = ""
    filters: SearchFilters = Field(default_factory=SearchFilters)

    model_config = ConfigDict(extra="forbid")


class ScoreBreakdown(BaseModel):
    total: int = Field(ge=0, le=100)
    connection: int = Field(ge=0, le=100)
    keyword: int = Field(ge=0, le=100)
    completeness: int = Field(ge=0, le=100)
    activity: int = Field(ge=0, le=100)


class SearchResult(BaseModel):
    profile_id: str
    name: str
    headline: str | None = None
    company: str | None = None
    role: str | None = None
    location: str | None = None
    connection_degree: int = Field(ge=1, le=3)
    match_score: int = Field(default=0, ge=0, le=100)
    path_available: bool = True
    reasoning: str = ""

    model_config = ConfigDict(extra="ignore")
