"""DashboardRepository: platform counters and client profile reads.

users is a core table and always present. payments, subscriptions, plans,
system_alerts, client_notes and reports are optional: the assembler only
calls the matching method when the capability is present, and each
statement still runs inside a SAVEPOINT so a failure stays local.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.money import ZERO, scale_units
from src.wm_dashboard.domain.models import (
    AlertRecord,
    ChurnCounts,
    ClientRecord,
    MonthlyAmount,
    MonthlyCount,
    NoteRecord,
    ReportRecord,
)

# Platform user counts cover customers and consultants, never admins.
_COUNT_USERS_SQL = text("""
    SELECT COUNT(*) FROM users
    WHERE role IN ('customer', 'consultant') AND created_at < :before
""")

_COUNT_NEW_USERS_SQL = text("""
    SELECT COUNT(*) FROM users
    WHERE role IN ('customer', 'consultant')
      AND created_at >= :start AND created_at < :end
""")

_MONTHLY_SIGNUPS_SQL = text("""
    SELECT EXTRACT(MONTH FROM created_at)::int AS month, COUNT(*) AS count
    FROM users
    WHERE role IN ('customer', 'consultant')
      AND created_at >= :start AND created_at < :end
    GROUP BY 1
    ORDER BY 1
""")

_MONTHLY_REVENUE_SQL = text("""
    SELECT EXTRACT(MONTH FROM p.created_at)::int AS month,
           COALESCE(SUM(p.amount_cents), 0) AS amount_cents
    FROM payments p
    JOIN subscriptions s ON p.subscription_id = s.id
    WHERE p.status = 'paid'
      AND p.created_at >= :start AND p.created_at < :end
    GROUP BY 1
    ORDER BY 1
""")

# Subscriptions recurring at :at: started by then and not yet canceled.
_MRR_SQL = text("""
    SELECT COALESCE(SUM(pl.price_cents), 0)
    FROM subscriptions s
    JOIN plans pl ON s.plan_id = pl.id
    WHERE s.created_at <= :at
      AND (s.status = 'active' OR (s.status = 'canceled' AND s.canceled_at > :at))
""")

_CHURN_SQL = text("""
    SELECT
        COUNT(*) FILTER (
            WHERE status = 'canceled' AND canceled_at >= :start AND canceled_at < :end
        ) AS canceled,
        COUNT(*) FILTER (
            WHERE status = 'active'
              AND current_period_start >= :start AND current_period_start < :end
        ) AS active_started
    FROM subscriptions
""")

_OPEN_ALERTS_SQL = text("""
    SELECT id, type, message, created_at
    FROM system_alerts
    WHERE resolved = false
    ORDER BY created_at DESC
    LIMIT :limit
""")

_GET_CLIENT_SQL = text("SELECT id, full_name, email FROM users WHERE id = :user_id")

_LIST_NOTES_SQL = text("""
    SELECT id, content, created_at
    FROM client_notes
    WHERE consultant_id = :consultant_id AND customer_id = :customer_id
    ORDER BY created_at DESC
""")

_LIST_REPORTS_SQL = text("""
    SELECT id, type, status, created_at AS generated_at, download_url
    FROM reports
    WHERE consultant_id = :consultant_id AND client_id = :customer_id
    ORDER BY created_at DESC
""")


class DashboardRepository:
    async def count_users(self, db: AsyncSession, created_before: datetime) -> int:
        async with db.begin_nested():
            result = await db.execute(_COUNT_USERS_SQL, {"before": created_before})
            return int(result.scalar_one() or 0)

    async def count_new_users(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> int:
        async with db.begin_nested():
            result = await db.execute(_COUNT_NEW_USERS_SQL, {"start": start, "end": end})
            return int(result.scalar_one() or 0)

    async def monthly_signups(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[MonthlyCount]:
        async with db.begin_nested():
            result = await db.execute(_MONTHLY_SIGNUPS_SQL, {"start": start, "end": end})
            rows = result.fetchall()
        return [MonthlyCount(month=int(row.month), count=int(row.count)) for row in rows]

    async def monthly_revenue(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[MonthlyAmount]:
        async with db.begin_nested():
            result = await db.execute(_MONTHLY_REVENUE_SQL, {"start": start, "end": end})
            rows = result.fetchall()
        return [
            MonthlyAmount(month=int(row.month), amount=scale_units(row.amount_cents, 100))
            for row in rows
        ]

    async def mrr(self, db: AsyncSession, at: datetime) -> Decimal:
        async with db.begin_nested():
            result = await db.execute(_MRR_SQL, {"at": at})
            raw = result.scalar_one_or_none()
        return scale_units(raw, 100) if raw is not None else ZERO

    async def churn_counts(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> ChurnCounts:
        async with db.begin_nested():
            result = await db.execute(_CHURN_SQL, {"start": start, "end": end})
            row = result.fetchone()
        if row is None:
            return ChurnCounts()
        return ChurnCounts(
            canceled=int(row.canceled or 0), active_started=int(row.active_started or 0)
        )

    async def open_alerts(self, db: AsyncSession, limit: int) -> list[AlertRecord]:
        async with db.begin_nested():
            result = await db.execute(_OPEN_ALERTS_SQL, {"limit": limit})
            rows = result.fetchall()
        return [
            AlertRecord(
                id=str(row.id), type=row.type, message=row.message, created_at=row.created_at
            )
            for row in rows
        ]

    async def get_client(self, db: AsyncSession, user_id: str) -> ClientRecord | None:
        async with db.begin_nested():
            result = await db.execute(_GET_CLIENT_SQL, {"user_id": user_id})
            row = result.fetchone()
        if row is None:
            return None
        return ClientRecord(id=str(row.id), full_name=row.full_name, email=row.email)

    async def list_notes(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> list[NoteRecord]:
        async with db.begin_nested():
            result = await db.execute(
                _LIST_NOTES_SQL,
                {"consultant_id": consultant_id, "customer_id": customer_id},
            )
            rows = result.fetchall()
        return [
            NoteRecord(id=str(row.id), content=row.content, created_at=row.created_at)
            for row in rows
        ]

    async def list_reports(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> list[ReportRecord]:
        async with db.begin_nested():
            result = await db.execute(
                _LIST_REPORTS_SQL,
                {"consultant_id": consultant_id, "customer_id": customer_id},
            )
            rows = result.fetchall()
        return [
            ReportRecord(
                id=str(row.id),
                type=row.type,
                status=row.status,
                generated_at=row.generated_at,
                download_url=row.download_url,
            )
            for row in rows
        ]
