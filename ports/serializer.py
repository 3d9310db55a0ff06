from __future__ import annotations

from typing import Awaitable, Callable, Protocol, TypeVar


T = TypeVar("T")


class SerializerPort(Protocol):
    """Process-wide FIFO queue; runs at most one operation at a time."""

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        ...
