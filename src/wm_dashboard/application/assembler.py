"""DashboardAssembler: KPI payloads for the customer, book and platform dashboards.

Flow per request:
  1. MetricsCache lookup (a hit returns immediately)
  2. CapabilityProbe, once; the descriptor is passed to everything below
  3. SnapshotAggregator (batched for a book or the platform)
  4. VisibilityGate rule for cross-subject figures
  5. payload cached for METRICS_CACHE_TTL_SECONDS and returned

Historical values are derived, not stored: the value at a past boundary is
today's snapshot with every cash flow since that boundary taken back out
of cash. Investments and debt are carried at their current value.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from decimal import Decimal
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wm_cache.domain import keys
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_common.datetime_utils import ensure_utc, utc_now
from src.wm_common.enums import LinkStatus, PeriodKind, SubjectRole
from src.wm_common.errors import ClientNotLinkedError, UserNotFoundError
from src.wm_common.money import ZERO
from src.wm_dashboard.application.schemas import (
    AlertOut,
    BookKpis,
    ClientOut,
    ClientProfile,
    ClientSnapshotOut,
    GrowthOut,
    KPIPayload,
    LinkOut,
    MonthlyRevenueOut,
    MonthlyUsersOut,
    NetWorthEvolution,
    NetWorthPointOut,
    NoteOut,
    PeriodOut,
    PlatformKpis,
    ReportOut,
    VisibilityOut,
)
from src.wm_dashboard.domain.growth import churn_rate, growth_percent
from src.wm_dashboard.domain.models import ChurnCounts, Scope
from src.wm_dashboard.domain.period import Period
from src.wm_dashboard.domain.repository import DashboardRepositoryProtocol
from src.wm_dashboard.infrastructure.persistence import DashboardRepository
from src.wm_snapshot.application.aggregator import SnapshotAggregator
from src.wm_snapshot.application.provider import get_capability_probe
from src.wm_snapshot.application.schemas import BreakdownItemOut, SnapshotOut
from src.wm_snapshot.domain.capability import CapabilityProbe
from src.wm_snapshot.domain.models import BreakdownItem, CapabilityDescriptor, Snapshot
from src.wm_snapshot.domain.relations import (
    CLIENT_NOTES,
    CUSTOMER_CONSULTANTS,
    PAYMENTS,
    PLANS,
    REPORTS,
    SUBSCRIPTIONS,
    SYSTEM_ALERTS,
)
from src.wm_visibility.domain.gate import VisibilityGate, decide
from src.wm_visibility.domain.models import ConsultantCustomerLink
from src.wm_visibility.domain.repository import LinkRepositoryProtocol
from src.wm_visibility.infrastructure.persistence import LinkRepository

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

_ALERT_LIMIT = 10


def cache_key(scope: Scope, period: Period) -> str:
    if scope.role == SubjectRole.PLATFORM:
        return keys.platform_dashboard(period.bucket)
    if scope.subject_id is None:
        raise ValueError(f"{scope.role.value} scope needs a subject id")
    if scope.role == SubjectRole.CUSTOMER:
        return keys.customer_dashboard(scope.subject_id, period.bucket)
    if scope.role == SubjectRole.CONSULTANT:
        return keys.consultant_dashboard(scope.subject_id, period.bucket)
    raise ValueError(f"No dashboard for scope {scope.role.value}")


class DashboardAssembler:
    def __init__(
        self,
        cache: MetricsCacheProtocol,
        aggregator: SnapshotAggregator | None = None,
        gate: VisibilityGate | None = None,
        probe: CapabilityProbe | None = None,
        repo: DashboardRepositoryProtocol | None = None,
        links: LinkRepositoryProtocol | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._cache = cache
        self._aggregator = aggregator or SnapshotAggregator()
        self._gate = gate or VisibilityGate()
        self._probe = probe or get_capability_probe()
        self._repo: DashboardRepositoryProtocol = repo or DashboardRepository()
        self._links: LinkRepositoryProtocol = links or LinkRepository()
        self._ttl = settings.METRICS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Dashboards
    # ------------------------------------------------------------------

    async def assemble(self, db: AsyncSession, scope: Scope, period: Period) -> KPIPayload:
        key = cache_key(scope, period)
        cached = await self._cached(key, KPIPayload)
        if cached is not None:
            return cached

        caps = await self._probe.probe(db)
        now = self._clock()
        if scope.role == SubjectRole.CUSTOMER:
            payload = await self._assemble_customer(db, caps, scope, period, now)
        elif scope.role == SubjectRole.CONSULTANT:
            payload = await self._assemble_book(db, caps, scope, period, now)
        else:
            payload = await self._assemble_platform(db, caps, scope, period, now)

        await self._cache.set(key, payload.model_dump(mode="json"), self._ttl)
        return payload

    async def _assemble_customer(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        scope: Scope,
        period: Period,
        now: datetime,
    ) -> KPIPayload:
        customer_id = scope.subject_id or ""
        snapshots = await self._aggregator.snapshot_batch(db, caps, [customer_id])
        current, previous = await self._current_and_previous(db, caps, snapshots, period, now)
        breakdown = await self._aggregator.breakdown(db, caps, [customer_id])
        return _payload(scope, period, current, previous, breakdown, now)

    async def _assemble_book(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        scope: Scope,
        period: Period,
        now: datetime,
    ) -> KPIPayload:
        consultant_id = scope.subject_id or ""
        links = await self._book_links(db, caps, consultant_id)
        active = [link for link in links if link.status == LinkStatus.ACTIVE.value]
        # Figures only for clients whose link passes the visibility rule.
        shared_ids = [link.customer_id for link in active if decide(link).allowed]

        snapshots = await self._aggregator.snapshot_batch(db, caps, shared_ids)
        current, previous = await self._current_and_previous(db, caps, snapshots, period, now)
        breakdown = await self._aggregator.breakdown(db, caps, shared_ids)

        payload = _payload(scope, period, current, previous, breakdown, now)
        payload.book = _book_kpis(active, len(shared_ids), period, now)
        return payload

    async def _assemble_platform(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        scope: Scope,
        period: Period,
        now: datetime,
    ) -> KPIPayload:
        snapshots = await self._aggregator.snapshot_batch(db, caps, None)
        current, previous = await self._current_and_previous(
            db, caps, snapshots, period, now, every_subject=True
        )
        breakdown = await self._aggregator.breakdown(db, caps, None)

        payload = _payload(scope, period, current, previous, breakdown, now)
        payload.platform = await self._platform_kpis(db, caps, period, now)
        return payload

    async def _current_and_previous(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        snapshots: dict[str, Snapshot],
        period: Period,
        now: datetime,
        every_subject: bool = False,
    ) -> tuple[Snapshot, Snapshot]:
        """Totals at min(period end, now) and at period start.

        Rolled back per subject, then summed, so one subject's cash can
        never go below zero to offset another's. With every_subject the
        flows are read for all subjects, including ones that hold no
        balance today.
        """
        flow_ids = None if every_subject else list(snapshots)
        since_start = await self._aggregator.net_flows(db, caps, flow_ids, period.start)
        previous = _rolled_back_total(snapshots, since_start)
        if not period.is_closed(now):
            return Snapshot.total(snapshots.values()), previous
        since_end = await self._aggregator.net_flows(db, caps, flow_ids, period.end)
        return _rolled_back_total(snapshots, since_end), previous

    async def _book_links(
        self, db: AsyncSession, caps: CapabilityDescriptor, consultant_id: str
    ) -> list[ConsultantCustomerLink]:
        if not caps.has(CUSTOMER_CONSULTANTS):
            return []
        return await self._isolated(
            "client links", self._links.list_links_for_consultant(db, consultant_id), []
        )

    async def _platform_kpis(
        self,
        db: AsyncSession,
        caps: CapabilityDescriptor,
        period: Period,
        now: datetime,
    ) -> PlatformKpis:
        as_of = period.as_of(now)
        prev = period.previous()
        repo = self._repo

        active_users = await self._isolated("active users", repo.count_users(db, as_of), 0)
        prev_active_users = await self._isolated(
            "active users", repo.count_users(db, period.start), 0
        )
        new_users = await self._isolated(
            "new users", repo.count_new_users(db, period.start, as_of), 0
        )
        prev_new_users = await self._isolated(
            "new users", repo.count_new_users(db, prev.start, prev.end), 0
        )

        mrr = prev_mrr = ZERO
        if caps.has_all(SUBSCRIPTIONS, PLANS):
            mrr = await self._isolated("mrr", repo.mrr(db, as_of), ZERO)
            prev_mrr = await self._isolated("mrr", repo.mrr(db, period.start), ZERO)

        churn = prev_churn = ChurnCounts()
        if caps.has(SUBSCRIPTIONS):
            churn = await self._isolated(
                "churn", repo.churn_counts(db, period.start, as_of), ChurnCounts()
            )
            prev_churn = await self._isolated(
                "churn", repo.churn_counts(db, prev.start, prev.end), ChurnCounts()
            )
        rate = churn_rate(churn.canceled, churn.active_started)
        prev_rate = churn_rate(prev_churn.canceled, prev_churn.active_started)

        months = _months(period, now)
        signups = await self._isolated(
            "user growth", repo.monthly_signups(db, period.start, as_of), []
        )
        by_month = {row.month: row.count for row in signups}
        user_growth = [
            MonthlyUsersOut(month=_month_label(period.year, m), users=by_month.get(m, 0))
            for m in months
        ]

        revenue: list[MonthlyRevenueOut] = []
        if caps.has_all(PAYMENTS, SUBSCRIPTIONS):
            amounts = await self._isolated(
                "revenue", repo.monthly_revenue(db, period.start, as_of), []
            )
            paid = {row.month: row.amount for row in amounts}
            revenue = [
                MonthlyRevenueOut(month=_month_label(period.year, m), revenue=paid.get(m, ZERO))
                for m in months
            ]

        alerts: list[AlertOut] = []
        if caps.has(SYSTEM_ALERTS):
            records = await self._isolated("alerts", repo.open_alerts(db, _ALERT_LIMIT), [])
            alerts = [
                AlertOut(id=a.id, type=a.type, message=a.message, time=a.created_at)
                for a in records
            ]

        return PlatformKpis(
            active_users=active_users,
            new_users=new_users,
            mrr=mrr,
            churn_rate=rate,
            growth={
                "active_users": growth_percent(active_users, prev_active_users),
                "new_users": growth_percent(new_users, prev_new_users),
                "mrr": growth_percent(mrr, prev_mrr),
                "churn_rate": growth_percent(rate, prev_rate),
            },
            user_growth=user_growth,
            revenue=revenue,
            alerts=alerts,
        )

    async def net_worth_evolution(
        self, db: AsyncSession, customer_id: str, months: int
    ) -> NetWorthEvolution:
        """Net worth at the end of each of the last *months* calendar months.

        The current month is taken now. Each earlier month is today's
        snapshot with the cash flows dated after that month taken back out,
        so a month without flows repeats the value of the month after it.
        """
        now = self._clock()
        current = Period(PeriodKind.MONTH, now.year, now.month)
        key = keys.net_worth_evolution(customer_id, current.bucket, months)
        cached = await self._cached(key, NetWorthEvolution)
        if cached is not None:
            return cached

        caps = await self._probe.probe(db)
        today = await self._aggregator.snapshot(db, caps, customer_id)
        periods = [current]
        while len(periods) < months:
            periods.append(periods[-1].previous())

        points = []
        for period in reversed(periods):
            snapshot = today
            if period.is_closed(now):
                flows = await self._aggregator.net_flows(db, caps, [customer_id], period.end)
                snapshot = today.rolled_back(flows.get(customer_id, ZERO))
            points.append(NetWorthPointOut(month=period.bucket, net_worth=snapshot.net_worth))

        evolution = NetWorthEvolution(months=months, points=points)
        await self._cache.set(key, evolution.model_dump(mode="json"), self._ttl)
        return evolution

    # ------------------------------------------------------------------
    # Consultant views of one client
    # ------------------------------------------------------------------

    async def client_snapshot(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> ClientSnapshotOut:
        """The client's snapshot, or an explicit denial. Never a zeroed snapshot."""
        key = keys.client_snapshot(consultant_id, customer_id)
        cached = await self._cached(key, ClientSnapshotOut)
        if cached is not None:
            return cached

        caps = await self._probe.probe(db)
        decision = await self._gate.authorize(db, caps, consultant_id, customer_id)
        snapshot = None
        if decision.allowed:
            snapshot = SnapshotOut.from_domain(
                await self._aggregator.snapshot(db, caps, customer_id)
            )
        out = ClientSnapshotOut(
            customer_id=customer_id,
            visibility=VisibilityOut.from_domain(decision),
            snapshot=snapshot,
        )
        await self._cache.set(key, out.model_dump(mode="json"), self._ttl)
        return out

    async def client_profile(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> ClientProfile:
        """Client page: link metadata, notes and reports for any active link.

        financial is None when sharing is off; notes and reports stay visible.
        """
        key = keys.client_profile(consultant_id, customer_id)
        cached = await self._cached(key, ClientProfile)
        if cached is not None:
            return cached

        caps = await self._probe.probe(db)
        link = await self._gate.find_link(db, caps, consultant_id, customer_id)
        if link is None or link.status != LinkStatus.ACTIVE.value:
            raise ClientNotLinkedError(customer_id)
        client = await self._repo.get_client(db, customer_id)
        if client is None:
            raise UserNotFoundError(customer_id)

        decision = decide(link)
        financial = None
        if decision.allowed:
            financial = SnapshotOut.from_domain(
                await self._aggregator.snapshot(db, caps, customer_id)
            )

        notes = []
        if caps.has(CLIENT_NOTES):
            notes = await self._isolated(
                "client notes", self._repo.list_notes(db, consultant_id, customer_id), []
            )
        reports = []
        if caps.has(REPORTS):
            reports = await self._isolated(
                "reports", self._repo.list_reports(db, consultant_id, customer_id), []
            )

        profile = ClientProfile(
            client=ClientOut(id=client.id, full_name=client.full_name, email=client.email),
            link=LinkOut(
                id=link.id,
                status=link.status,
                can_view_all=link.can_view_all,
                is_primary=link.is_primary,
                created_at=link.created_at,
            ),
            visibility=VisibilityOut.from_domain(decision),
            wallet_shared=link.can_view_all,
            financial=financial,
            notes=[NoteOut(id=n.id, content=n.content, created_at=n.created_at) for n in notes],
            reports=[
                ReportOut(
                    id=r.id,
                    type=r.type,
                    status=r.status,
                    generated_at=r.generated_at,
                    download_url=r.download_url,
                )
                for r in reports
            ],
        )
        await self._cache.set(key, profile.model_dump(mode="json"), self._ttl)
        return profile

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _cached(self, key: str, model: type[M]) -> M | None:
        payload = await self._cache.get(key)
        if payload is None:
            return None
        try:
            return model.model_validate(payload)
        except ValidationError:
            logger.warning("discarding malformed metrics cache entry %s", key)
            return None

    async def _isolated(self, label: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except Exception:
            logger.warning("%s unavailable, defaulting", label, exc_info=True)
            return default


def _payload(
    scope: Scope,
    period: Period,
    current: Snapshot,
    previous: Snapshot,
    breakdown: list[BreakdownItem],
    now: datetime,
) -> KPIPayload:
    return KPIPayload(
        scope=scope.role.value,
        subject_id=scope.subject_id,
        period=PeriodOut.from_domain(period),
        snapshot=SnapshotOut.from_domain(current),
        previous_snapshot=SnapshotOut.from_domain(previous),
        growth=GrowthOut(
            cash=growth_percent(current.cash, previous.cash),
            investments=growth_percent(current.investments, previous.investments),
            debt=growth_percent(current.debt, previous.debt),
            net_worth=growth_percent(current.net_worth, previous.net_worth),
        ),
        breakdown=[BreakdownItemOut.from_domain(item) for item in breakdown],
        generated_at=now,
    )


def _rolled_back_total(snapshots: dict[str, Snapshot], flows: dict[str, Decimal]) -> Snapshot:
    ids = dict.fromkeys([*snapshots, *flows])
    return Snapshot.total(
        snapshots.get(sid, Snapshot()).rolled_back(flows.get(sid, ZERO)) for sid in ids
    )


def _book_kpis(
    active: Iterable[ConsultantCustomerLink],
    shared_clients: int,
    period: Period,
    now: datetime,
) -> BookKpis:
    active = list(active)
    as_of = period.as_of(now)
    prev = period.previous()

    total = sum(1 for link in active if _created_before(link, as_of))
    prev_total = sum(1 for link in active if _created_before(link, period.start))
    new = sum(1 for link in active if _created_between(link, period.start, as_of))
    prev_new = sum(1 for link in active if _created_between(link, prev.start, prev.end))

    return BookKpis(
        total_clients=total,
        shared_clients=shared_clients,
        new_clients=new,
        growth={
            "total_clients": growth_percent(total, prev_total),
            "new_clients": growth_percent(new, prev_new),
        },
    )


def _created_before(link: ConsultantCustomerLink, boundary: datetime) -> bool:
    # Links without a creation date predate every period.
    return link.created_at is None or ensure_utc(link.created_at) < boundary


def _created_between(link: ConsultantCustomerLink, start: datetime, end: datetime) -> bool:
    if link.created_at is None:
        return False
    return start <= ensure_utc(link.created_at) < end


def _months(period: Period, now: datetime) -> list[int]:
    if period.kind == PeriodKind.MONTH:
        return [period.month or 1]
    last = 12 if period.is_closed(now) else now.month
    return list(range(1, last + 1))


def _month_label(year: int, month: int) -> str:
    return f"{year}-{month:02d}"
