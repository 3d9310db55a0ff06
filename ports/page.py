from __future__ import annotations

from typing import Optional, Protocol, Sequence


class PageElement(Protocol):
    """Read-only view of one rendered element."""

    def select(self, locator: str) -> list["PageElement"]:
        ...

    def text(self) -> Optional[str]:
        ...

    def attr(self, name: str) -> Optional[str]:
        ...


class HostPage(Protocol):
    """The rendered, partially-loaded page an acquisition run reads from."""

    async def wait_for(self, locators: Sequence[str], timeout: float) -> bool:
        ...

    async def load_more(self) -> None:
        ...

    async def root(self) -> PageElement:
        ...
