from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import aiosqlite

from config.settings import get_settings
from db import schema
from db.connection import get_connection, write_tx
from db.repos.activities_repo import ActivitiesRepo
from db.repos.companies_repo import CompaniesRepo
from db.repos.edges_repo import EdgesRepo
from db.repos.nodes_repo import NodesRepo
from db.repos.settings_repo import SettingsRepo
from models import ActivityEvent, CompanyMap, Edge, Node


logger = logging.getLogger(__name__)


class GraphStore:
    """Local graph store: nodes, edges, activities and companies over one SQLite connection.

    Construct with `await GraphStore.open(path)` (or the `graph_store` context manager)
    and inject it into acquisition and query code; there is no process-wide instance.
    """

    def __init__(self, conn: aiosqlite.Connection, db_path: str):
        self.conn = conn
        self.db_path = db_path
        self.nodes = NodesRepo(conn)
        self.edges = EdgesRepo(conn)
        self.activities = ActivitiesRepo(conn)
        self.companies = CompaniesRepo(conn)
        self.settings = SettingsRepo(conn)

    @classmethod
    async def open(cls, db_path: Optional[str] = None) -> "GraphStore":
        path = db_path or get_settings().db_path
        conn = await get_connection(path)
        await schema.bootstrap(conn)
        logger.info("Graph store opened at %s", path)
        return cls(conn, path)

    async def close(self) -> None:
        await self.conn.close()

    # Nodes
    async def get_node(self, node_id: str) -> Optional[Node]:
        return await self.nodes.get(node_id)

    async def node_exists(self, node_id: str) -> bool:
        return await self.nodes.exists(node_id)

    async def upsert_node(self, node: Node) -> None:
        await self.nodes.upsert(node)

    async def bulk_upsert_nodes(self, nodes: Sequence[Node]) -> int:
        return await self.nodes.bulk_upsert(nodes)

    async def all_nodes(self) -> List[Node]:
        return await self.nodes.all()

    async def nodes_by_degree(self, degrees: Sequence[int]) -> List[Node]:
        return await self.nodes.by_degree(degrees)

    async def count_by_degree(self) -> Dict[int, int]:
        return await self.nodes.count_by_degree()

    # Edges
    async def upsert_edge(self, edge: Edge) -> None:
        await self.edges.upsert(edge)

    async def bulk_upsert_edges(self, edges: Sequence[Edge]) -> int:
        return await self.edges.bulk_upsert(edges)

    async def outgoing_edges(self, node_id: str) -> List[Edge]:
        return await self.edges.outgoing(node_id)

    async def incoming_edges(self, node_id: str) -> List[Edge]:
        return await self.edges.incoming(node_id)

    # Activities
    async def activity_exists(self, activity_id: str) -> bool:
        return await self.activities.exists(activity_id)

    async def add_activity(self, event: ActivityEvent) -> bool:
        return await self.activities.insert(event)

    async def bulk_insert_activities(self, events: Sequence[ActivityEvent]) -> int:
        return await self.activities.bulk_insert(events)

    async def activities_for_target(self, target_id: str, limit: Optional[int] = None) -> List[ActivityEvent]:
        return await self.activities.for_target(target_id, limit)

    async def activities_by_actor(self, actor_id: str, limit: Optional[int] = None) -> List[ActivityEvent]:
        return await self.activities.by_actor(actor_id, limit)

    async def count_activities(self, actor_id: str, since: Optional[str] = None) -> int:
        return await self.activities.count_by_actor(actor_id, since)

    # Companies
    async def get_company(self, company_id: str) -> Optional[CompanyMap]:
        return await self.companies.get(company_id)

    async def upsert_company(self, company: CompanyMap) -> None:
        await self.companies.upsert(company)

    # Maintenance
    async def clear_all(self) -> None:
        """Delete every graph row in a single transaction. Settings/progress are kept."""
        async with write_tx(self.conn, "clear graph"):
            for table in ("nodes", "edges", "activities", "companies"):
                await self.conn.execute(f"DELETE FROM {table}")
        logger.info("Graph store cleared")

    async def db_stats(self) -> Dict[str, int]:
        return {
            "nodes": await self.nodes.count(),
            "edges": await self.edges.count(),
            "activities": await self.activities.count(),
            "companies": await self.companies.count(),
        }

    async def storage_usage(self) -> Dict[str, Any]:
        """Bytes used by the database file, plus percentage of the configured quota if any."""
        async with self.conn.execute("PRAGMA page_count") as cur:
            page_count = (await cur.fetchone())[0]
        async with self.conn.execute("PRAGMA page_size") as cur:
            page_size = (await cur.fetchone())[0]
        usage = int(page_count) * int(page_size)
        wal_path = f"{self.db_path}-wal"
        if self.db_path != ":memory:" and os.path.exists(wal_path):
            usage += os.path.getsize(wal_path)
        quota = get_settings().storage_quota_bytes
        percentage = round(usage / quota * 100, 2) if quota else None
        return {"usage_bytes": usage, "quota_bytes": quota, "percentage": percentage}


@asynccontextmanager
async def graph_store(db_path: Optional[str] = None) -> AsyncIterator[GraphStore]:
    store = await GraphStore.open(db_path)
    try:
        yield store
    finally:
        await store.close()
