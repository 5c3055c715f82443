"""SnapshotAggregator: cash / investments / debt / net worth.

Each component is resolved and summed on its own: cash may come from the
aggregator tables while debt still comes from the legacy ledger, and a
failure in one component only zeroes that component.

Batch mode issues one grouped query per component for the whole subject
set, so a consultant's book or the platform costs the same number of
queries as a single customer.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.money import ZERO, scale_units
from src.wm_snapshot.domain.breakdown import group_breakdown
from src.wm_snapshot.domain.models import (
    BreakdownItem,
    CapabilityDescriptor,
    Snapshot,
    SourceSpec,
)
from src.wm_snapshot.domain.repository import SnapshotRepositoryProtocol
from src.wm_snapshot.domain.sources import SourceResolver
from src.wm_snapshot.infrastructure.persistence import SnapshotRepository

logger = logging.getLogger(__name__)


class SnapshotAggregator:
    def __init__(
        self,
        repo: SnapshotRepositoryProtocol | None = None,
        resolver: SourceResolver | None = None,
    ) -> None:
        self._repo: SnapshotRepositoryProtocol = repo or SnapshotRepository()
        self._resolver = resolver or SourceResolver()

    async def snapshot(
        self, db: AsyncSession, caps: CapabilityDescriptor, subject_id: str
    ) -> Snapshot:
        batch = await self.snapshot_batch(db, caps, [subject_id])
        return batch[subject_id]

    async def snapshot_batch(
        self, db: AsyncSession, caps: CapabilityDescriptor, subject_ids: list[str] | None
    ) -> dict[str, Snapshot]:
        """Snapshots keyed by subject.

        subject_ids=None means every subject holding a balance in any
        component, which is how platform totals are built.
        """
        ids = _unique(subject_ids)
        if ids == []:
            return {}
        cash = await self._by_subject(db, self._resolver.resolve_cash(caps), ids)
        investments = await self._by_subject(
            db, self._resolver.resolve_investments(caps), ids
        )
        debt = await self._by_subject(db, self._resolver.resolve_debt(caps), ids)
        if ids is None:
            ids = list(dict.fromkeys([*cash, *investments, *debt]))
        return {
            sid: Snapshot.build(
                cash.get(sid, ZERO), investments.get(sid, ZERO), debt.get(sid, ZERO)
            )
            for sid in ids
        }

    async def net_flows(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        subject_ids: list[str] | None,
        since: datetime,
    ) -> dict[str, Decimal]:
        """Signed cash movement per subject from *since* until now.

        With subject_ids=None only subjects that had a movement are returned.
        """
        spec = self._resolver.resolve_flows(caps)
        ids = _unique(subject_ids)
        flows = await self._by_subject(db, spec, ids, since)
        if ids is None:
            return flows
        return {sid: flows.get(sid, ZERO) for sid in ids}

    async def breakdown(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        subject_ids: list[str] | None,
    ) -> list[BreakdownItem]:
        """Investments by type; subject_ids=None means platform-wide."""
        spec = self._resolver.resolve_investments(caps)
        if spec is None:
            return []
        try:
            groups = await self._repo.group_by_type(db, spec, subject_ids)
        except Exception:
            logger.warning("breakdown unavailable from %s", spec.relation, exc_info=True)
            return []
        return group_breakdown(groups, spec.scale)

    async def _by_subject(
        self,
        db: AsyncSession,
        spec: SourceSpec | None,
        ids: list[str] | None,
        since: datetime | None = None,
    ) -> dict[str, Decimal]:
        if spec is None:
            return {}
        try:
            raw = await self._repo.sum_by_subject(db, spec, ids, since)
        except Exception:
            logger.warning(
                "%s unavailable from %s, defaulting to 0",
                spec.component.value,
                spec.relation,
                exc_info=True,
            )
            return {}
        return {sid: scale_units(value, spec.scale) for sid, value in raw.items()}


def _unique(subject_ids: list[str] | None) -> list[str] | None:
    return None if subject_ids is None else list(dict.fromkeys(subject_ids))
