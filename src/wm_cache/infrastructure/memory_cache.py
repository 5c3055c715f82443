"""In-process MetricsCache for single-worker deployments and tests.

Expired entries are dropped when read, and swept from set() at most once
per sweep interval so keys that are never read again do not accumulate.
"""

import copy
import time
from collections.abc import Callable

from src.wm_cache.domain.protocol import Payload


class InMemoryMetricsCache:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self._entries: dict[str, tuple[Payload, float]] = {}

    async def get(self, key: str) -> Payload | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return copy.deepcopy(payload)

    async def set(self, key: str, payload: Payload, ttl: int) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        self._entries[key] = (copy.deepcopy(payload), now + ttl)

    async def invalidate(self, key: str, *, prefix: bool = False) -> None:
        if not prefix:
            self._entries.pop(key, None)
            return
        for existing in [k for k in self._entries if k.startswith(key)]:
            self._entries.pop(existing, None)

    def _sweep(self, now: float) -> None:
        for key in [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval

    def __len__(self) -> int:
        return len(self._entries)
