from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.node import utc_now_iso


ActivityType = Literal["post", "comment", "reaction", "share"]

# Fixed namespace so the same engagement always yields the same id.
_ACTIVITY_NAMESPACE = uuid.UUID("6f1c9a52-3d0e-4b8a-9a57-2f6d8c1e4b10")


def activity_id_for(actor_id: str, target_id: str, type_: str, post_id: str | None, content: str | None) -> str:
    key = "|".join([actor_id, target_id, type_, post_id or "", (content or "")[:200]])
    return str(uuid.uuid5(_ACTIVITY_NAMESPACE, key))


class ActivityEvent(BaseModel):
    """One actor engaging with one target's content. Immutable once built."""

    id: str = ""
    actor_id: str = Field(min_length=1)
    target_id: str = ""
    type: ActivityType
    content: str | None = None
    post_id: str | None = None
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    timestamp: str = Field(default_factory=utc_now_iso)
    scraped_at: str = Field(default_factory=utc_now_iso)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _fill_target_and_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("target_id"):
            data["target_id"] = data.get("actor_id")
        if not data.get("id") and data.get("actor_id") and data.get("type"):
            data["id"] = activity_id_for(
                data["actor_id"], data["target_id"], data["type"], data.get("post_id"), data.get("content")
            )
        return data
