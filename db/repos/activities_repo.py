from __future__ import annotations

from typing import List, Optional, Sequence

import aiosqlite

from db.connection import write_tx
from models import ActivityEvent


_COLUMNS = "id, actor_id, target_id, type, content, post_id, likes, comments, timestamp, scraped_at"

# Events are immutable: a repeated id is ignored, never merged.
_INSERT_SQL = f"INSERT OR IGNORE INTO activities ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"


def _to_params(e: ActivityEvent) -> tuple:
    return (e.id, e.actor_id, e.target_id, e.type, e.content, e.post_id, e.likes, e.comments, e.timestamp, e.scraped_at)


def _from_row(row) -> ActivityEvent:
    return ActivityEvent(
        id=row[0],
        actor_id=row[1],
        target_id=row[2],
        type=row[3],
        content=row[4],
        post_id=row[5],
        likes=int(row[6] or 0),
        comments=int(row[7] or 0),
        timestamp=row[8],
        scraped_at=row[9],
    )


class ActivitiesRepo:
    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def insert(self, event: ActivityEvent) -> bool:
        """Store one event. Returns False if an event with the same id already exists."""
        async with write_tx(self.conn, f"insert activity {event.id}"):
            cur = await self.conn.execute(_INSERT_SQL, _to_params(event))
            inserted = cur.rowcount > 0
            await cur.close()
        return inserted

    async def bulk_insert(self, events: Sequence[ActivityEvent]) -> int:
        """Insert all events atomically; returns the number of new rows."""
        if not events:
            return 0
        async with write_tx(self.conn, f"bulk insert of {len(events)} activities"):
            cur = await self.conn.executemany(_INSERT_SQL, [_to_params(e) for e in events])
            inserted = max(cur.rowcount, 0)
            await cur.close()
        return inserted

    async def get(self, activity_id: str) -> Optional[ActivityEvent]:
        async with self.conn.execute(f"SELECT {_COLUMNS} FROM activities WHERE id = ?", (activity_id,)) as cur:
            row = await cur.fetchone()
        return _from_row(row) if row else None

    async def exists(self, activity_id: str) -> bool:
        async with self.conn.execute("SELECT 1 FROM activities WHERE id = ?", (activity_id,)) as cur:
            return (await cur.fetchone()) is not None

    async def for_target(self, target_id: str, limit: Optional[int] = None) -> List[ActivityEvent]:
        """Who engaged with this person, newest first."""
        sql = f"SELECT {_COLUMNS} FROM activities WHERE target_id = ? ORDER BY timestamp DESC"
        params: list = [target_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        async with self.conn.execute(sql, params) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def by_actor(self, actor_id: str, limit: Optional[int] = None) -> List[ActivityEvent]:
        sql = f"SELECT {_COLUMNS} FROM activities WHERE actor_id = ? ORDER BY timestamp DESC"
        params: list = [actor_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        async with self.conn.execute(sql, params) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def by_type(self, type_: str) -> List[ActivityEvent]:
        sql = f"SELECT {_COLUMNS} FROM activities WHERE type = ? ORDER BY timestamp DESC"
        async with self.conn.execute(sql, (type_,)) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def count_by_actor(self, actor_id: str, since: Optional[str] = None) -> int:
        """Rows authored by actor_id, optionally only those with timestamp after `since` (ISO-8601)."""
        if since is None:
            sql, params = "SELECT COUNT(*) FROM activities WHERE actor_id = ?", (actor_id,)
        else:
            sql, params = "SELECT COUNT(*) FROM activities WHERE actor_id = ? AND timestamp > ?", (actor_id, since)
        async with self.conn.execute(sql, params) as cur:
            row = await cur.fetchone()
        return int(row[0])

    async def count(self) -> int:
        async with self.conn.execute("SELECT COUNT(*) FROM activities") as cur:
            row = await cur.fetchone()
        return int(row[0])
