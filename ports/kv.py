from __future__ import annotations

from typing import Any, Optional, Protocol


class KeyValuePort(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...
