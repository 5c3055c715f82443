"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.

All sums are returned RAW (in the relation's stored unit); scaling to
currency units is the aggregator's job, driven by SourceSpec.scale.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_snapshot.domain.models import SourceSpec, TypeGroup


class SnapshotRepositoryProtocol(Protocol):
    async def relation_exists(self, db: AsyncSession, relation: str) -> bool: ...

    async def sum_by_subject(
        self,
        db: AsyncSession,
        spec: SourceSpec,
        subject_ids: list[str] | None,
        since: datetime | None = None,
    ) -> dict[str, Decimal]: ...

    async def group_by_type(
        self,
        db: AsyncSession,
        spec: SourceSpec,
        subject_ids: list[str] | None,
    ) -> list[TypeGroup]: ...
