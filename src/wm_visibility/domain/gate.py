"""VisibilityGate: may a consultant see a customer's financial figures?

Applies to financial figures only. Notes and report metadata follow the
link itself (any active link), not the sharing flag.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.enums import DenialReason, LinkStatus
from src.wm_snapshot.domain.models import CapabilityDescriptor
from src.wm_snapshot.domain.relations import CUSTOMER_CONSULTANTS
from src.wm_visibility.domain.models import ConsultantCustomerLink, VisibilityDecision
from src.wm_visibility.domain.repository import LinkRepositoryProtocol
from src.wm_visibility.infrastructure.persistence import LinkRepository

logger = logging.getLogger(__name__)


def decide(link: ConsultantCustomerLink | None) -> VisibilityDecision:
    """Allowed only for status=active AND can_view_all=true."""
    if link is None:
        return VisibilityDecision.deny(DenialReason.NO_LINK.value)
    if link.status != LinkStatus.ACTIVE.value:
        return VisibilityDecision.deny(DenialReason.LINK_NOT_ACTIVE.value)
    if not link.can_view_all:
        return VisibilityDecision.deny(DenialReason.SHARING_DISABLED.value)
    return VisibilityDecision.allow()


class VisibilityGate:
    def __init__(self, repo: LinkRepositoryProtocol | None = None) -> None:
        self._repo: LinkRepositoryProtocol = repo or LinkRepository()

    async def authorize(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        consultant_id: str,
        customer_id: str,
    ) -> VisibilityDecision:
        link = await self.find_link(db, caps, consultant_id, customer_id)
        decision = decide(link)
        if not decision.allowed:
            logger.info(
                "snapshot of %s withheld from consultant %s: %s",
                customer_id,
                consultant_id,
                decision.reason,
            )
        return decision

    async def find_link(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        consultant_id: str,
        customer_id: str,
    ) -> ConsultantCustomerLink | None:
        """Look up the link; an absent relation or failed lookup reads as no link."""
        if not caps.has(CUSTOMER_CONSULTANTS):
            return None
        try:
            return await self._repo.get_link(db, consultant_id, customer_id)
        except Exception:
            logger.warning(
                "link lookup failed for %s/%s", consultant_id, customer_id, exc_info=True
            )
            return None
