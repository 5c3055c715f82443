"""DashboardRepository Protocol: platform counters and client profile reads."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_dashboard.domain.models import (
    AlertRecord,
    ChurnCounts,
    ClientRecord,
    MonthlyAmount,
    MonthlyCount,
    NoteRecord,
    ReportRecord,
)


class DashboardRepositoryProtocol(Protocol):
    async def count_users(self, db: AsyncSession, created_before: datetime) -> int: ...

    async def count_new_users(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> int: ...

    async def monthly_signups(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[MonthlyCount]: ...

    async def monthly_revenue(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[MonthlyAmount]: ...

    async def mrr(self, db: AsyncSession, at: datetime) -> Decimal: ...

    async def churn_counts(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> ChurnCounts: ...

    async def open_alerts(self, db: AsyncSession, limit: int) -> list[AlertRecord]: ...

    async def get_client(self, db: AsyncSession, user_id: str) -> ClientRecord | None: ...

    async def list_notes(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> list[NoteRecord]: ...

    async def list_reports(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> list[ReportRecord]: ...
