"""CapabilityProbe: which optional relations exist in this deployment.

Every check is isolated: a missing relation or any query error means the
capability is absent, never an exception to the caller.
"""

import logging
import time
from collections.abc import Callable, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_snapshot.domain.models import CapabilityDescriptor
from src.wm_snapshot.domain.relations import OPTIONAL_RELATIONS
from src.wm_snapshot.domain.repository import SnapshotRepositoryProtocol

logger = logging.getLogger(__name__)


class CapabilityProbe:
    """Probes relations once and memoizes the result for a short TTL.

    ttl_seconds=0 disables reuse across calls; the caller still threads the
    returned descriptor through a whole request so checks are never
    re-issued within one aggregation pass.
    """

    def __init__(
        self,
        repo: SnapshotRepositoryProtocol,
        relations: Iterable[str] = OPTIONAL_RELATIONS,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repo = repo
        self._relations = tuple(relations)
        self._ttl = ttl_seconds
        self._clock = clock
        self._cached: CapabilityDescriptor | None = None
        self._cached_at = 0.0

    async def probe(self, db: AsyncSession) -> CapabilityDescriptor:
        if self._cached is not None and self._clock() - self._cached_at < self._ttl:
            return self._cached

        present: set[str] = set()
        for relation in self._relations:
            try:
                exists = await self._repo.relation_exists(db, relation)
            except Exception as exc:  # noqa: BLE001
                logger.debug("capability check failed for %s: %s", relation, exc)
                exists = False
            if exists:
                present.add(relation)

        descriptor = CapabilityDescriptor(
            present=frozenset(present), checked=frozenset(self._relations)
        )
        if self._ttl > 0:
            self._cached = descriptor
            self._cached_at = self._clock()
        logger.info(
            "capabilities probed: %d/%d relations present",
            len(present),
            len(self._relations),
        )
        return descriptor

    def refresh(self) -> None:
        """Drop the memoized descriptor, e.g. after running a migration."""
        self._cached = None
