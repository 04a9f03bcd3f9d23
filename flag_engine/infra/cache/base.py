"""Contract shared by the evaluation cache backends."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EvaluationCache(Protocol):
    """Async key/value store for memoized evaluation decisions.

    ``get`` returns None only when the key is absent, so a stored ``False``
    is distinguishable from a miss. Implementations raise on transport
    failure instead of reporting a miss.
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def ping(self) -> bool: ...
