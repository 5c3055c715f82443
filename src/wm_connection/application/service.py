"""Connection sync hook.

The external aggregator sync writes pluggy_* rows outside this service;
when it finishes, the user's figures (and every book and platform total
that includes them) are stale.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.application.invalidation import MetricsInvalidator

logger = logging.getLogger(__name__)


class ConnectionService:
    def __init__(self, invalidator: MetricsInvalidator) -> None:
        self._invalidator = invalidator

    async def sync_completed(
        self, db: AsyncSession, user_id: str, connection_id: str | None = None
    ) -> dict[str, object]:
        cleared = await self._invalidator.subject_changed(db, user_id)
        logger.info(
            "sync of connection %s complete for %s, %d cache scopes cleared",
            connection_id or "-",
            user_id,
            len(cleared),
        )
        return {"user_id": user_id, "connection_id": connection_id, "invalidated": len(cleared)}
