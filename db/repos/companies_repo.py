from __future__ import annotations

import json
from typing import List, Optional

import aiosqlite

from db.connection import write_tx
from models import CompanyMap, Employee


def _from_row(row) -> CompanyMap:
    employees = [Employee.model_validate(e) for e in json.loads(row[2] or "[]")]
    return CompanyMap(company_id=row[0], company_name=row[1], employees=employees, scraped_at=row[3])


class CompaniesRepo:
    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def upsert(self, company: CompanyMap) -> None:
        """Replace the whole company map, employee list included."""
        employees_json = json.dumps([e.model_dump() for e in company.employees], ensure_ascii=False)
        async with write_tx(self.conn, f"upsert company {company.company_id}"):
            await self.conn.execute(
                "INSERT INTO companies (company_id, company_name, employees_json, scraped_at) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(company_id) DO UPDATE SET company_name = excluded.company_name, "
                "employees_json = excluded.employees_json, scraped_at = excluded.scraped_at",
                (company.company_id, company.company_name, employees_json, company.scraped_at),
            )

    async def get(self, company_id: str) -> Optional[CompanyMap]:
        sql = "SELECT company_id, company_name, employees_json, scraped_at FROM companies WHERE company_id = ?"
        async with self.conn.execute(sql, (company_id,)) as cur:
            row = await cur.fetchone()
        return _from_row(row) if row else None

    async def find_by_name(self, name: str) -> List[CompanyMap]:
        sql = (
            "SELECT company_id, company_name, employees_json, scraped_at FROM companies "
            "WHERE LOWER(company_name) LIKE ? ORDER BY company_name"
        )
        async with self.conn.execute(sql, (f"%{name.lower()}%",)) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def all(self) -> List[CompanyMap]:
        sql = "SELECT company_id, company_name, employees_json, scraped_at FROM companies ORDER BY company_name"
        async with self.conn.execute(sql) as cur:
            rows = await cur.fetchall()
        return [_from_row(r) for r in rows]

    async def count(self) -> int:
        async with self.conn.execute("SELECT COUNT(*) FROM companies") as cur:
            row = await cur.fetchone()
        return int(row[0])
