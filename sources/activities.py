from __future__ import annotations

from typing import Optional, Sequence

from config.locators import Locators
from extraction.activities import extract_activity
from models import ActivityEvent
from ports.page import PageElement
from ports.repos import GraphStorePort
from sources.base import AcquisitionSource
from sources.registry import register


class ActivitiesSource(AcquisitionSource):
    """Activity feed items -> activity events.

    `profile_id` is the owner of the feed being read and is used as the actor
    for items that do not link their author.
    """

    kind = "activities"

    def __init__(self, profile_id: Optional[str] = None, locators: Optional[Locators] = None):
        super().__init__(locators)
        self.profile_id = profile_id

    def extract(self, element: PageElement) -> Optional[ActivityEvent]:
        return extract_activity(element, self.locators, default_actor_id=self.profile_id)

    async def exists(self, store: GraphStorePort, record: ActivityEvent) -> bool:
        return await store.activity_exists(record.id)

    async def persist(self, store: GraphStorePort, batch: Sequence[ActivityEvent]) -> int:
        await store.bulk_insert_activities(batch)
        return len(batch)


def _register():
    register(ActivitiesSource.kind, ActivitiesSource)


_register()
