from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from models.node import utc_now_iso


class Employee(BaseModel):
    profile_id: str = Field(min_length=1)
    name: str
    headline: str | None = None
    role: str = "Unknown"
    department: str | None = None
    connection_degree: int | None = Field(default=None, ge=1, le=3)
    mutual_connections: int = Field(default=0, ge=0)
    profile_url: str | None = None

    model_config = ConfigDict(extra="ignore")


class CompanyMap(BaseModel):
    """Employees seen for one company; upserted wholesale per scrape."""

    company_id: str = Field(min_length=1)
    company_name: str
    employees: list[Employee] = Field(default_factory=list)
    scraped_at: str = Field(default_factory=utc_now_iso)

    model_config = ConfigDict(extra="ignore")
