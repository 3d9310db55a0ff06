from __future__ import annotations

from typing import List, Optional, Sequence

import aiosqlite

from db.connection import write_tx
from models import Edge


_UPSERT_SQL = (
    "INSERT INTO edges (from_id, to_id, weight, relationship_type) VALUES (?, ?, ?, ?) "
    "ON CONFLICT(from_id, to_id) DO UPDATE SET weight = excluded.weight, relationship_type = excluded.relationship_type"
)


def _from_row(row) -> Edge:
    return Edge(from_id=row[0], to_id=row[1], weight=float(row[2]), relationship_type=row[3])


class EdgesRepo:
    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def upsert(self, edge: Edge) -> None:
        async with write_tx(self.conn, f"upsert edge {edge.from_id}->{edge.to_id}"):
            await self.conn.execute(_UPSERT_SQL, (edge.from_id, edge.to_id, edge.weight, edge.relationship_type))

    async def bulk_upsert(self, edges: Sequence[Edge]) -> int:
        if not edges:
            return 0
        params = [(e.from_id, e.to_id, e.weight, e.relationship_type) for e in edges]
        async with write_tx(self.conn, f"bulk upsert of {len(edges)} edges"):
            await self.conn.executemany(_UPSERT_SQL, params)
        return len(edges)

    async def get(self, from_id: str, to_id: str) -> Optional[Edge]:
        sql = "SELECT from_id, to_id, weight, relationship_type FROM edges WHERE from_id = ? AND to_id = ?"
        async with self.conn.execute(sql, (from_id, to_id)) as cur:
            row = await cur.fetchone()
        return _from_row(row) if row else None

    async def outgoing(self, from_id: str) -> List[Edge]:
        sql = "SELECT from_id, to_id, weight, relationship_type FROM edges WHERE from_id = ? ORDER BY to_id"
        async with self.conn.execute(sql, (from_id,)) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def incoming(self, to_id: str) -> List[Edge]:
        sql = "SELECT from_id, to_id, weight, relationship_type FROM edges WHERE to_id = ? ORDER BY from_id"
        async with self.conn.execute(sql, (to_id,)) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def count(self) -> int:
        async with self.conn.execute("SELECT COUNT(*) FROM edges") as cur:
            row = await cur.fetchone()
        return int(row[0])
