"""MetricsCache contract.

A cost-control cache for expensive aggregation, not a store of record:
get returns None on a miss, and every implementation fails open (a broken
backend behaves like an empty cache, never like an error).
"""

from typing import Any, Protocol

Payload = dict[str, Any]


class MetricsCacheProtocol(Protocol):
    async def get(self, key: str) -> Payload | None: ...

    async def set(self, key: str, payload: Payload, ttl: int) -> None: ...

    async def invalidate(self, key: str, *, prefix: bool = False) -> None: ...
