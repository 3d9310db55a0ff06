from __future__ import annotations

from typing import Optional, Sequence

from extraction.connections import extract_connection, extract_total_count
from models import Node
from ports.page import HostPage, PageElement
from ports.repos import GraphStorePort
from sources.base import AcquisitionSource
from sources.registry import register


class ConnectionsSource(AcquisitionSource):
    """1st-degree connection cards -> nodes."""

    kind = "connections"

    async def prepare(self, page: HostPage) -> Optional[int]:
        return extract_total_count(await page.root(), self.locators)

    def extract(self, element: PageElement) -> Optional[Node]:
        return extract_connection(element, self.locators)

    async def exists(self, store: GraphStorePort, record: Node) -> bool:
        return await store.node_exists(record.id)

    async def persist(self, store: GraphStorePort, batch: Sequence[Node]) -> int:
        return await store.bulk_upsert_nodes(batch)


def _register():
    register(ConnectionsSource.kind, ConnectionsSource)


_register()
