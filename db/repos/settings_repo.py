from __future__ import annotations

import json
from typing import Any, Optional

import aiosqlite

from db.connection import write_tx


class SettingsRepo:
    """Durable key/value store; values are JSON-encoded."""

    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def get(self, key: str) -> Optional[Any]:
        async with self.conn.execute("SELECT value_json FROM settings WHERE key = ?", (key,)) as cur:
            row = await cur.fetchone()
        if not row:
            return None
        return json.loads(row[0])

    async def set(self, key: str, value: Any) -> None:
        async with write_tx(self.conn, f"set {key}"):
            await self.conn.execute(
                "INSERT INTO settings (key, value_json, updated_at) VALUES (?, ?, datetime('now')) "
                "ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at",
                (key, json.dumps(value, ensure_ascii=False)),
            )

    async def remove(self, key: str) -> None:
        async with write_tx(self.conn, f"remove {key}"):
            await self.conn.execute("DELETE FROM settings WHERE key = ?", (key,))
