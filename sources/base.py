from __future__ import annotations

from typing import Any, Optional, Sequence

from config.locators import Locators, load_locators
from ports.page import HostPage


class AcquisitionSource:
    """Shared plumbing for acquisition kinds; subclasses set `kind` and the record hooks."""

    kind: str = ""

    def __init__(self, locators: Optional[Locators] = None):
        self.locators = locators or load_locators()

    def item_locators(self) -> Sequence[str]:
        return self.locators.chain(self.kind, "items")

    async def prepare(self, page: HostPage) -> Optional[int]:
        """Read page-level context before extraction; returns the known total, if announced."""
        return None

    def record_id(self, record: Any) -> str:
        return record.id
