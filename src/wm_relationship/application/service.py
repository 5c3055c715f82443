"""RelationshipService: consultant/customer link lifecycle and client notes.

Every mutation commits first and then fires MetricsInvalidator.link_changed,
so neither side's dashboard keeps serving figures computed under the old
link state.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_common.datetime_utils import ensure_utc, utc_now
from src.wm_common.enums import LinkStatus
from src.wm_common.errors import (
    ClientNotLinkedError,
    FeatureUnavailableError,
    InvitationAlreadyAcceptedError,
    InvitationExpiredError,
    LinkNotFoundError,
    NoteNotFoundError,
)
from src.wm_relationship.application.schemas import (
    LinkRemovedResponse,
    LinkStateResponse,
    NoteResponse,
)
from src.wm_relationship.domain.repository import RelationshipRepositoryProtocol
from src.wm_relationship.infrastructure.persistence import RelationshipRepository
from src.wm_snapshot.application.provider import get_capability_probe
from src.wm_snapshot.domain.capability import CapabilityProbe
from src.wm_snapshot.domain.models import CapabilityDescriptor
from src.wm_snapshot.domain.relations import CLIENT_NOTES, CUSTOMER_CONSULTANTS
from src.wm_visibility.domain.gate import VisibilityGate

logger = logging.getLogger(__name__)


class RelationshipService:
    def __init__(
        self,
        invalidator: MetricsInvalidator,
        repo: RelationshipRepositoryProtocol | None = None,
        gate: VisibilityGate | None = None,
        probe: CapabilityProbe | None = None,
        invitation_ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._invalidator = invalidator
        self._repo: RelationshipRepositoryProtocol = repo or RelationshipRepository()
        self._gate = gate or VisibilityGate()
        self._probe = probe or get_capability_probe()
        self._invitation_ttl = invitation_ttl or timedelta(
            days=settings.LINK_INVITATION_TTL_DAYS
        )
        self._clock = clock

    # --- customer side ---

    async def accept_invitation(
        self, db: AsyncSession, customer_id: str, link_id: str
    ) -> LinkStateResponse:
        await self._require(db, CUSTOMER_CONSULTANTS)
        link = await self._repo.get_customer_link(db, link_id, customer_id)
        if link is None:
            raise LinkNotFoundError(link_id)
        if link.status == LinkStatus.ACTIVE.value:
            raise InvitationAlreadyAcceptedError(link_id)
        if link.status == LinkStatus.EXPIRED.value:
            raise InvitationExpiredError(link_id)
        if link.created_at is not None and (
            ensure_utc(link.created_at) + self._invitation_ttl < self._clock()
        ):
            try:
                await self._repo.expire_link(db, link_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            raise InvitationExpiredError(link_id)

        try:
            accepted = await self._repo.activate_link(db, link_id, customer_id)
            if accepted is None:
                raise LinkNotFoundError(link_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("customer %s accepted consultant %s", customer_id, accepted.consultant_id)
        await self._invalidator.link_changed(accepted.consultant_id, customer_id)
        return LinkStateResponse.from_domain(accepted)

    async def decline_invitation(
        self, db: AsyncSession, customer_id: str, link_id: str
    ) -> LinkRemovedResponse:
        await self._require(db, CUSTOMER_CONSULTANTS)
        link = await self._repo.get_customer_link(db, link_id, customer_id)
        if link is None:
            raise LinkNotFoundError(link_id)
        if link.status == LinkStatus.ACTIVE.value:
            raise InvitationAlreadyAcceptedError(link_id)
        return await self._delete_link(db, customer_id, link_id, only_active=False)

    async def disconnect(
        self, db: AsyncSession, customer_id: str, link_id: str
    ) -> LinkRemovedResponse:
        await self._require(db, CUSTOMER_CONSULTANTS)
        return await self._delete_link(db, customer_id, link_id, only_active=True)

    async def update_sharing(
        self, db: AsyncSession, customer_id: str, link_id: str, can_view_all: bool
    ) -> LinkStateResponse:
        await self._require(db, CUSTOMER_CONSULTANTS)
        try:
            link = await self._repo.update_sharing(db, link_id, customer_id, can_view_all)
            if link is None:
                raise LinkNotFoundError(link_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "customer %s set wallet sharing=%s for consultant %s",
            customer_id,
            can_view_all,
            link.consultant_id,
        )
        await self._invalidator.link_changed(link.consultant_id, customer_id)
        return LinkStateResponse.from_domain(link)

    # --- consultant side ---

    async def add_note(
        self, db: AsyncSession, consultant_id: str, customer_id: str, content: str
    ) -> NoteResponse:
        caps = await self._require(db, CLIENT_NOTES)
        link = await self._gate.find_link(db, caps, consultant_id, customer_id)
        if link is None or link.status != LinkStatus.ACTIVE.value:
            raise ClientNotLinkedError(customer_id)
        try:
            note = await self._repo.insert_note(db, consultant_id, customer_id, content)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._invalidator.link_changed(consultant_id, customer_id)
        return NoteResponse.from_domain(note, customer_id)

    async def delete_note(
        self, db: AsyncSession, consultant_id: str, customer_id: str, note_id: str
    ) -> dict[str, str]:
        await self._require(db, CLIENT_NOTES)
        try:
            deleted = await self._repo.delete_note(db, note_id, consultant_id, customer_id)
            if not deleted:
                raise NoteNotFoundError(note_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._invalidator.link_changed(consultant_id, customer_id)
        return {"id": note_id}

    # --- helpers ---

    async def _delete_link(
        self, db: AsyncSession, customer_id: str, link_id: str, only_active: bool
    ) -> LinkRemovedResponse:
        try:
            consultant_id = await self._repo.delete_link(db, link_id, customer_id, only_active)
            if consultant_id is None:
                raise LinkNotFoundError(link_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("link %s between %s and %s removed", link_id, consultant_id, customer_id)
        await self._invalidator.link_changed(consultant_id, customer_id)
        return LinkRemovedResponse(id=link_id, consultant_id=consultant_id)

    async def _require(self, db: AsyncSession, relation: str) -> CapabilityDescriptor:
        caps = await self._probe.probe(db)
        if not caps.has(relation):
            raise FeatureUnavailableError(relation)
        return caps
