from __future__ import annotations

import aiosqlite


async def bootstrap(conn: aiosqlite.Connection) -> None:
    """Create the graph tables and their indexes (idempotent)."""

    # Nodes: profile body stored as JSON, queryable columns denormalized
    await conn.execute(
        (
            "CREATE TABLE IF NOT EXISTS nodes (\n"
            "  id TEXT PRIMARY KEY,\n"
            "  degree INTEGER NOT NULL CHECK (degree BETWEEN 1 AND 3),\n"
            "  match_score REAL NOT NULL DEFAULT 0 CHECK (match_score BETWEEN 0 AND 100),\n"
            "  activity_score REAL,\n"
            "  status TEXT NOT NULL DEFAULT 'not_contacted',\n"
            "  name TEXT NOT NULL,\n"
            "  profile_json TEXT NOT NULL,\n"
            "  last_contacted_at TEXT,\n"
            "  updated_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_degree ON nodes(degree);")
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_nodes_match_score ON nodes(match_score);")

    # Edges: composite key forbids duplicate (from, to) pairs
    await conn.execute(
        (
            "CREATE TABLE IF NOT EXISTS edges (\n"
            "  from_id TEXT NOT NULL,\n"
            "  to_id TEXT NOT NULL,\n"
            "  weight REAL NOT NULL CHECK (weight > 0 AND weight <= 1),\n"
            "  relationship_type TEXT NOT NULL DEFAULT 'unknown',\n"
            "  PRIMARY KEY (from_id, to_id)\n"
            ")"
        )
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_from ON edges(from_id);")
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_edges_to ON edges(to_id);")

    # Activities
    await conn.execute(
        (
            "CREATE TABLE IF NOT EXISTS activities (\n"
            "  id TEXT PRIMARY KEY,\n"
            "  actor_id TEXT NOT NULL,\n"
            "  target_id TEXT NOT NULL CHECK (target_id <> ''),\n"
            "  type TEXT NOT NULL,\n"
            "  content TEXT,\n"
            "  post_id TEXT,\n"
            "  likes INTEGER NOT NULL DEFAULT 0,\n"
            "  comments INTEGER NOT NULL DEFAULT 0,\n"
            "  timestamp TEXT NOT NULL,\n"
            "  scraped_at TEXT NOT NULL\n"
            ")"
        )
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_actor ON activities(actor_id);")
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_target ON activities(target_id);")
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_type ON activities(type);")
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_timestamp ON activities(timestamp);")

    # Companies
    await conn.execute(
        (
            "CREATE TABLE IF NOT EXISTS companies (\n"
            "  company_id TEXT PRIMARY KEY,\n"
            "  company_name TEXT NOT NULL,\n"
            "  employees_json TEXT NOT NULL DEFAULT '[]',\n"
            "  scraped_at TEXT NOT NULL\n"
            ")"
        )
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS idx_companies_name ON companies(company_name);")

    # Durable key/value settings (progress records live here)
    await conn.execute(
        (
            "CREATE TABLE IF NOT EXISTS settings (\n"
            "  key TEXT PRIMARY KEY,\n"
            "  value_json TEXT NOT NULL,\n"
            "  updated_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )

    await conn.commit()
