from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from config.locators import Locators
from extraction.companies import extract_company_name, extract_employee
from models import CompanyMap, Employee
from ports.page import HostPage, PageElement
from ports.repos import GraphStorePort
from services.profile_urls import extract_company_id
from sources.base import AcquisitionSource
from sources.registry import register


logger = logging.getLogger(__name__)


class CompanyEmployeesSource(AcquisitionSource):
    """People cards on a company page -> one company map, rewritten on every batch."""

    kind = "company_employees"

    def __init__(
        self,
        company_id: Optional[str] = None,
        company_name: Optional[str] = None,
        locators: Optional[Locators] = None,
        company_url: Optional[str] = None,
    ):
        super().__init__(locators)
        # A company page URL such as /company/acme/people/ is enough to identify the company
        company_id = company_id or extract_company_id(company_url)
        if not company_id:
            raise ValueError("company_id or a company page URL is required")
        self.company_id = company_id
        self.company_name = company_name
        self._employees: Dict[str, Employee] = {}
        self._loaded = False

    async def prepare(self, page: HostPage) -> Optional[int]:
        if not self.company_name:
            self.company_name = extract_company_name(await page.root(), self.locators)
        return None

    def extract(self, element: PageElement) -> Optional[Employee]:
        return extract_employee(element, self.locators)

    def record_id(self, record: Employee) -> str:
        return record.profile_id

    async def _ensure_loaded(self, store: GraphStorePort) -> None:
        if self._loaded:
            return
        existing = await store.get_company(self.company_id)
        if existing is not None:
            self._employees = {e.profile_id: e for e in existing.employees}
            self.company_name = self.company_name or existing.company_name
        self._loaded = True

    async def exists(self, store: GraphStorePort, record: Employee) -> bool:
        await self._ensure_loaded(store)
        return record.profile_id in self._employees

    async def persist(self, store: GraphStorePort, batch: Sequence[Employee]) -> int:
        await self._ensure_loaded(store)
        employees = dict(self._employees)
        for employee in batch:
            employees[employee.profile_id] = employee
        company = CompanyMap(
            company_id=self.company_id,
            company_name=self.company_name or self.company_id,
            employees=list(employees.values()),
        )
        await store.upsert_company(company)
        # Only advance the in-memory view once the write is durable
        self._employees = employees
        logger.debug("Company %s now has %d employees", self.company_id, len(employees))
        return len(batch)


def _register():
    register(CompanyEmployeesSource.kind, CompanyEmployeesSource)


_register()
