"""Pydantic schemas for dashboard payloads.

KPIPayload round-trips through the metrics cache as JSON
(model_dump(mode="json") on the way in, model_validate on the way out),
so every field here must survive that trip unchanged.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from src.wm_dashboard.domain.period import Period
from src.wm_snapshot.application.schemas import BreakdownItemOut, SnapshotOut
from src.wm_visibility.domain.models import VisibilityDecision


class PeriodOut(BaseModel):
    kind: str
    year: int
    month: int | None = None
    bucket: str
    start: datetime
    end: datetime

    @classmethod
    def from_domain(cls, period: Period) -> "PeriodOut":
        return cls(
            kind=period.kind.value,
            year=period.year,
            month=period.month,
            bucket=period.bucket,
            start=period.start,
            end=period.end,
        )


class GrowthOut(BaseModel):
    cash: float = 0.0
    investments: float = 0.0
    debt: float = 0.0
    net_worth: float = 0.0


class BookKpis(BaseModel):
    total_clients: int = 0
    shared_clients: int = 0
    new_clients: int = 0
    growth: dict[str, float] = {}


class MonthlyUsersOut(BaseModel):
    month: str        # "2026-03"
    users: int


class MonthlyRevenueOut(BaseModel):
    month: str
    revenue: Decimal


class NetWorthPointOut(BaseModel):
    month: str        # "2026-04"
    net_worth: Decimal


class NetWorthEvolution(BaseModel):
    months: int
    points: list[NetWorthPointOut] = []


class AlertOut(BaseModel):
    id: str
    type: str | None = None
    message: str | None = None
    time: datetime | None = None


class PlatformKpis(BaseModel):
    active_users: int = 0
    new_users: int = 0
    mrr: Decimal = Decimal("0.00")
    churn_rate: float = 0.0
    growth: dict[str, float] = {}
    user_growth: list[MonthlyUsersOut] = []
    revenue: list[MonthlyRevenueOut] = []
    alerts: list[AlertOut] = []


class KPIPayload(BaseModel):
    scope: str
    subject_id: str | None = None
    period: PeriodOut
    snapshot: SnapshotOut
    previous_snapshot: SnapshotOut
    growth: GrowthOut
    breakdown: list[BreakdownItemOut] = []
    book: BookKpis | None = None
    platform: PlatformKpis | None = None
    generated_at: datetime


class VisibilityOut(BaseModel):
    allowed: bool
    reason: str | None = None

    @classmethod
    def from_domain(cls, decision: VisibilityDecision) -> "VisibilityOut":
        return cls(allowed=decision.allowed, reason=decision.reason)


class ClientSnapshotOut(BaseModel):
    """snapshot is None exactly when visibility.allowed is False."""

    customer_id: str
    visibility: VisibilityOut
    snapshot: SnapshotOut | None = None


class ClientOut(BaseModel):
    id: str
    full_name: str | None = None
    email: str | None = None


class LinkOut(BaseModel):
    id: str
    status: str
    can_view_all: bool
    is_primary: bool = False
    created_at: datetime | None = None


class NoteOut(BaseModel):
    id: str
    content: str
    created_at: datetime | None = None


class ReportOut(BaseModel):
    id: str
    type: str | None = None
    status: str | None = None
    generated_at: datetime | None = None
    download_url: str | None = None


class ClientProfile(BaseModel):
    client: ClientOut
    link: LinkOut
    visibility: VisibilityOut
    wallet_shared: bool
    financial: SnapshotOut | None = None
    notes: list[NoteOut] = []
    reports: list[ReportOut] = []
