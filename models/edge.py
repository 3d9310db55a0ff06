from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


RelationshipType = Literal["mutual", "colleague", "school", "unknown"]


class Edge(BaseModel):
    """Directed relationship; (from_id, to_id) is the primary key."""

    from_id: str = Field(min_length=1)
    to_id: str = Field(min_length=1)
    weight: float = Field(default=1.0, gt=0, le=1)
    relationship_type: RelationshipType = "unknown"

    model_config = ConfigDict(extra="ignore")
