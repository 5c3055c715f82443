"""MetricsInvalidator: every cache invalidation hook in one place.

Mutations call exactly one of these after they commit:

  subject_changed  role change, block/unblock, connection sync
  link_changed     invitation accept/decline, disconnect, sharing toggle,
                   client note create/delete

Invalidation is best-effort and fire-and-forget: deleting a key that does
not exist is a no-op, and a broken cache never fails the mutation.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.domain import keys
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_visibility.domain.repository import LinkRepositoryProtocol
from src.wm_visibility.infrastructure.persistence import LinkRepository

logger = logging.getLogger(__name__)


class MetricsInvalidator:
    def __init__(
        self,
        cache: MetricsCacheProtocol,
        links: LinkRepositoryProtocol | None = None,
    ) -> None:
        self._cache = cache
        self._links: LinkRepositoryProtocol = links or LinkRepository()

    async def subject_changed(self, db: AsyncSession, subject_id: str) -> list[str]:
        """Clear every scope whose figures include *subject_id*.

        That is the subject's own scopes, the book of every consultant linked
        to it, and the platform totals. Returns the cleared scope prefixes.
        """
        scopes = [
            keys.customer_scope(subject_id),
            keys.consultant_scope(subject_id),
            keys.PLATFORM_SCOPE,
        ]
        try:
            consultant_ids = await self._links.list_consultant_ids_for_customer(
                db, subject_id
            )
        except Exception:
            logger.warning(
                "could not list consultants of %s; their books expire by TTL",
                subject_id,
                exc_info=True,
            )
            consultant_ids = []
        scopes.extend(keys.consultant_scope(c) for c in consultant_ids)
        await self._clear(scopes)
        return scopes

    async def link_changed(self, consultant_id: str, customer_id: str) -> list[str]:
        scopes = [
            keys.consultant_scope(consultant_id),
            keys.customer_scope(customer_id),
            keys.PLATFORM_SCOPE,
        ]
        await self._clear(scopes)
        return scopes

    async def _clear(self, scopes: list[str]) -> None:
        for scope in dict.fromkeys(scopes):
            try:
                await self._cache.invalidate(scope, prefix=True)
            except Exception:
                logger.warning("invalidate %s failed", scope, exc_info=True)
        logger.debug("metrics cache invalidated: %s", ", ".join(scopes))
