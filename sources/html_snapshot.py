from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag


logger = logging.getLogger(__name__)


class SoupElement:
    """PageElement over a BeautifulSoup tag."""

    def __init__(self, tag: Tag):
        self._tag = tag

    def select(self, locator: str) -> List["SoupElement"]:
        return [SoupElement(t) for t in self._tag.select(locator)]

    def text(self) -> Optional[str]:
        return self._tag.get_text(" ")

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value


class SnapshotPage:
    """HostPage that replays saved HTML snapshots of an infinitely scrolling list.

    Each `load_more()` advances to the next snapshot, as if one scroll had rendered
    more items; once the last snapshot is reached the page stops growing.
    """

    def __init__(self, snapshots: Sequence[str], parser: str = "html.parser"):
        if not snapshots:
            raise ValueError("SnapshotPage needs at least one snapshot")
        self._snapshots = list(snapshots)
        self._parser = parser
        self._index = 0
        self._soup: Optional[BeautifulSoup] = None
        self.load_calls = 0

    @classmethod
    def from_files(cls, paths: Iterable[str | Path]) -> "SnapshotPage":
        return cls([Path(p).read_text(encoding="utf-8") for p in paths])

    def _current(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self._snapshots[self._index], self._parser)
        return self._soup

    async def wait_for(self, locators: Sequence[str], timeout: float) -> bool:
        root = SoupElement(self._current())
        for locator in locators:
            if root.select(locator):
                return True
        logger.debug("None of %d locators present in snapshot %d", len(locators), self._index)
        return False

    async def load_more(self) -> None:
        self.load_calls += 1
        if self._index < len(self._snapshots) - 1:
            self._index += 1
            self._soup = None
        await asyncio.sleep(0)

    async def root(self) -> SoupElement:
        return SoupElement(self._current())
