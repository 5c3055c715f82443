"""Process-wide CapabilityProbe, memoized for CAPABILITY_TTL_SECONDS."""

from functools import lru_cache

from config.settings import settings
from src.wm_snapshot.domain.capability import CapabilityProbe
from src.wm_snapshot.infrastructure.persistence import SnapshotRepository


@lru_cache(maxsize=1)
def get_capability_probe() -> CapabilityProbe:
    return CapabilityProbe(
        SnapshotRepository(), ttl_seconds=settings.CAPABILITY_TTL_SECONDS
    )
