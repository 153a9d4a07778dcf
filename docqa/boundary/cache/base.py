"""
Persistent cache interface.

Dependencies: None
System role: Contract for the networked key-value cache tier
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PersistentCache(Protocol):
    """Networked key-value store with TTL semantics.

    Implementations raise ``CacheUnavailableError`` on any backend failure;
    the tiered cache absorbs it.
    """

    async def get(self, key: str) -> tuple[Any, bool]:
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def keys(self, pattern: str) -> list[str]:
        ...

    async def close(self) -> None:
        ...
