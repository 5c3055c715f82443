"""Unit tests for the connection sync hook."""

from unittest.mock import AsyncMock, MagicMock

from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_cache.domain import keys
from src.wm_cache.infrastructure.memory_cache import InMemoryMetricsCache
from src.wm_connection.application.service import ConnectionService


class TestSyncCompleted:
    async def test_clears_user_books_and_platform(self):
        cache = InMemoryMetricsCache()
        await cache.set(keys.customer_dashboard("u1", "2026-10"), {}, 60)
        await cache.set(keys.consultant_dashboard("c1", "2026-10"), {}, 60)
        await cache.set(keys.platform_dashboard("2026"), {}, 60)
        links = AsyncMock()
        links.list_consultant_ids_for_customer.return_value = ["c1"]
        service = ConnectionService(MetricsInvalidator(cache, links=links))

        resp = await service.sync_completed(MagicMock(), "u1", "conn-9")

        assert resp == {"user_id": "u1", "connection_id": "conn-9", "invalidated": 4}
        assert len(cache) == 0

    async def test_connection_id_optional(self):
        invalidator = AsyncMock()
        invalidator.subject_changed.return_value = []

        resp = await ConnectionService(invalidator).sync_completed(MagicMock(), "u1")

        assert resp["connection_id"] is None
