from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ports.page import HostPage, PageElement
from ports.repos import GraphStorePort


class AcquisitionSourcePort(Protocol):
    """One acquisition kind: how to find, extract, dedup and persist its items."""

    kind: str

    async def prepare(self, page: HostPage) -> Optional[int]:
        ...

    def item_locators(self) -> Sequence[str]:
        ...

    def extract(self, element: PageElement) -> Optional[Any]:
        ...

    def record_id(self, record: Any) -> str:
        ...

    async def exists(self, store: GraphStorePort, record: Any) -> bool:
        ...

    async def persist(self, store: GraphStorePort, batch: Sequence[Any]) -> int:
        ...
