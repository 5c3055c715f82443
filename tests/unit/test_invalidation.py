"""Tests for MetricsInvalidator: every scope containing a changed subject is cleared."""

from unittest.mock import AsyncMock, MagicMock

from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_cache.domain import keys
from src.wm_cache.infrastructure.memory_cache import InMemoryMetricsCache


async def _populated_cache() -> InMemoryMetricsCache:
    cache = InMemoryMetricsCache()
    for key in (
        keys.customer_dashboard("u1", "2026-10"),
        keys.customer_dashboard("u2", "2026-10"),
        keys.consultant_dashboard("c1", "2026-10"),
        keys.client_snapshot("c1", "u1"),
        keys.consultant_dashboard("c2", "2026-10"),
        keys.platform_dashboard("2026"),
    ):
        await cache.set(key, {"cached": True}, ttl=60)
    return cache


class TestSubjectChanged:
    async def test_clears_own_linked_books_and_platform(self) -> None:
        cache = await _populated_cache()
        links = AsyncMock()
        links.list_consultant_ids_for_customer.return_value = ["c1"]

        await MetricsInvalidator(cache, links=links).subject_changed(MagicMock(), "u1")

        assert await cache.get(keys.customer_dashboard("u1", "2026-10")) is None
        assert await cache.get(keys.consultant_dashboard("c1", "2026-10")) is None
        assert await cache.get(keys.client_snapshot("c1", "u1")) is None
        assert await cache.get(keys.platform_dashboard("2026")) is None
        # unrelated scopes survive
        assert await cache.get(keys.customer_dashboard("u2", "2026-10")) is not None
        assert await cache.get(keys.consultant_dashboard("c2", "2026-10")) is not None

    async def test_consultant_subject_clears_own_book(self) -> None:
        cache = await _populated_cache()
        links = AsyncMock()
        links.list_consultant_ids_for_customer.return_value = []

        await MetricsInvalidator(cache, links=links).subject_changed(MagicMock(), "c2")

        assert await cache.get(keys.consultant_dashboard("c2", "2026-10")) is None

    async def test_link_lookup_failure_still_clears_own_and_platform(self) -> None:
        cache = await _populated_cache()
        links = AsyncMock()
        links.list_consultant_ids_for_customer.side_effect = RuntimeError("no table")

        scopes = await MetricsInvalidator(cache, links=links).subject_changed(MagicMock(), "u1")

        assert keys.PLATFORM_SCOPE in scopes
        assert await cache.get(keys.customer_dashboard("u1", "2026-10")) is None
        assert await cache.get(keys.platform_dashboard("2026")) is None


class TestLinkChanged:
    async def test_clears_both_sides_and_platform(self) -> None:
        cache = await _populated_cache()

        await MetricsInvalidator(cache, links=AsyncMock()).link_changed("c1", "u1")

        assert await cache.get(keys.consultant_dashboard("c1", "2026-10")) is None
        assert await cache.get(keys.customer_dashboard("u1", "2026-10")) is None
        assert await cache.get(keys.platform_dashboard("2026")) is None
        assert await cache.get(keys.consultant_dashboard("c2", "2026-10")) is not None

    async def test_cache_errors_never_propagate(self) -> None:
        cache = AsyncMock()
        cache.invalidate.side_effect = RuntimeError("cache down")

        scopes = await MetricsInvalidator(cache, links=AsyncMock()).link_changed("c1", "u1")

        assert cache.invalidate.await_count == 3
        assert scopes == ["consultant:c1:", "customer:u1:", "platform:"]
