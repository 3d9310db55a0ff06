from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set

import aiosqlite

from db.connection import write_tx
from models import Node, Profile


_COLUMNS = "id, degree, match_score, activity_score, status, profile_json, last_contacted_at"

_UPSERT_SQL = (
    "INSERT INTO nodes (id, degree, match_score, activity_score, status, name, profile_json, last_contacted_at, updated_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
    "ON CONFLICT(id) DO UPDATE SET "
    "degree = excluded.degree, match_score = excluded.match_score, activity_score = excluded.activity_score, "
    "status = excluded.status, name = excluded.name, profile_json = excluded.profile_json, "
    "last_contacted_at = excluded.last_contacted_at, updated_at = excluded.updated_at"
)


def _to_params(node: Node) -> tuple:
    return (
        node.id,
        node.degree,
        node.match_score,
        node.activity_score,
        node.status,
        node.profile.name,
        node.profile.model_dump_json(),
        node.last_contacted_at,
        datetime.now(timezone.utc).isoformat(),
    )


def _from_row(row) -> Node:
    return Node(
        id=row[0],
        degree=int(row[1]),
        match_score=float(row[2]),
        activity_score=row[3],
        status=row[4],
        profile=Profile.model_validate_json(row[5]),
        last_contacted_at=row[6],
    )


class NodesRepo:
    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def upsert(self, node: Node) -> None:
        """Insert or overwrite a node by id."""
        async with write_tx(self.conn, f"upsert node {node.id}"):
            await self.conn.execute(_UPSERT_SQL, _to_params(node))

    async def bulk_upsert(self, nodes: Sequence[Node]) -> int:
        """Upsert all nodes in one transaction. Nothing is written if any row fails."""
        if not nodes:
            return 0
        async with write_tx(self.conn, f"bulk upsert of {len(nodes)} nodes"):
            await self.conn.executemany(_UPSERT_SQL, [_to_params(n) for n in nodes])
        return len(nodes)

    async def get(self, node_id: str) -> Optional[Node]:
        async with self.conn.execute(f"SELECT {_COLUMNS} FROM nodes WHERE id = ?", (node_id,)) as cur:
            row = await cur.fetchone()
        return _from_row(row) if row else None

    async def exists(self, node_id: str) -> bool:
        async with self.conn.execute("SELECT 1 FROM nodes WHERE id = ?", (node_id,)) as cur:
            return (await cur.fetchone()) is not None

    async def existing_ids(self, node_ids: Iterable[str]) -> Set[str]:
        ids = list(node_ids)
        if not ids:
            return set()
        placeholders = ",".join("?" for _ in ids)
        async with self.conn.execute(f"SELECT id FROM nodes WHERE id IN ({placeholders})", ids) as cur:
            rows = await cur.fetchall()
        return {r[0] for r in rows}

    async def all(self) -> List[Node]:
        async with self.conn.execute(f"SELECT {_COLUMNS} FROM nodes ORDER BY id") as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def by_degree(self, degrees: Sequence[int]) -> List[Node]:
        """Equality scan on the degree index."""
        if not degrees:
            return []
        placeholders = ",".join("?" for _ in degrees)
        sql = f"SELECT {_COLUMNS} FROM nodes WHERE degree IN ({placeholders}) ORDER BY degree, id"
        async with self.conn.execute(sql, list(degrees)) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def by_score_range(self, min_score: float = 0, max_score: float = 100, limit: Optional[int] = None) -> List[Node]:
        """Range scan on the score index, highest first."""
        sql = f"SELECT {_COLUMNS} FROM nodes WHERE match_score BETWEEN ? AND ? ORDER BY match_score DESC, id"
        params: list = [min_score, max_score]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        async with self.conn.execute(sql, params) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def count(self) -> int:
        async with self.conn.execute("SELECT COUNT(*) FROM nodes") as cur:
            row = await cur.fetchone()
        return int(row[0])

    async def count_by_degree(self) -> Dict[int, int]:
        counts = {1: 0, 2: 0, 3: 0}
        async with self.conn.execute("SELECT degree, COUNT(*) FROM nodes GROUP BY degree") as cur:
            for degree, n in await cur.fetchall():
                counts[int(degree)] = int(n)
        return counts
