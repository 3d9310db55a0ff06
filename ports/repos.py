from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from models import ActivityEvent, CompanyMap, Node


class GraphStorePort(Protocol):
    async def get_node(self, node_id: str) -> Optional[Node]:
        ...

    async def node_exists(self, node_id: str) -> bool:
        ...

    async def bulk_upsert_nodes(self, nodes: Sequence[Node]) -> int:
        ...

    async def all_nodes(self) -> List[Node]:
        ...

    async def nodes_by_degree(self, degrees: Sequence[int]) -> List[Node]:
        ...

    async def activity_exists(self, activity_id: str) -> bool:
        ...

    async def bulk_insert_activities(self, events: Sequence[ActivityEvent]) -> int:
        ...

    async def activities_by_actor(self, actor_id: str) -> List[ActivityEvent]:
        ...

    async def get_company(self, company_id: str) -> Optional[CompanyMap]:
        ...

    async def upsert_company(self, company: CompanyMap) -> None:
        ...

    async def count_by_degree(self) -> Dict[int, int]:
        ...

    async def count_activities(self, actor_id: str, since: Optional[str] = None) -> int:
        ...
