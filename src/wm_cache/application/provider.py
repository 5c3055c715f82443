"""Process-wide MetricsCache selection (FastAPI dependency)."""

from config.settings import settings
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_cache.infrastructure.memory_cache import InMemoryMetricsCache
from src.wm_cache.infrastructure.redis_cache import RedisMetricsCache

_cache: MetricsCacheProtocol | None = None


def build_metrics_cache(backend: str) -> MetricsCacheProtocol:
    if backend == "redis":
        return RedisMetricsCache()
    if backend == "memory":
        return InMemoryMetricsCache()
    raise ValueError(f"Unknown METRICS_CACHE_BACKEND: {backend}")


def get_metrics_cache() -> MetricsCacheProtocol:
    global _cache  # noqa: PLW0603
    if _cache is None:
        _cache = build_metrics_cache(settings.METRICS_CACHE_BACKEND)
    return _cache
