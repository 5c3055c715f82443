"""HTTP-level tests: routing, envelopes, error mapping and query validation.

Auth, DB session and services are replaced through dependency_overrides, so
no database or Redis is needed.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import settings
from src.main import app
from src.wm_admin.api.router import get_admin_service
from src.wm_cache.infrastructure.memory_cache import InMemoryMetricsCache
from src.wm_common.database import get_db_session
from src.wm_common.errors import InvitationExpiredError
from src.wm_common.money import ZERO
from src.wm_dashboard.api.router import get_dashboard_assembler
from src.wm_dashboard.application.assembler import DashboardAssembler
from src.wm_dashboard.domain.models import ChurnCounts
from src.wm_gateway.auth.dependencies import require_admin, require_consultant, require_customer
from src.wm_relationship.api.router import get_relationship_service
from src.wm_relationship.application.schemas import LinkStateResponse
from src.wm_snapshot.domain import relations as rel
from src.wm_snapshot.domain.models import CapabilityDescriptor, Snapshot
from src.wm_visibility.domain.gate import VisibilityGate

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


async def _fake_db():
    yield MagicMock()


def _assembler(links: AsyncMock | None = None) -> DashboardAssembler:
    aggregator = AsyncMock()
    aggregator.snapshot_batch.return_value = {"u1": Snapshot.build(Decimal("1000"), ZERO, ZERO)}
    aggregator.snapshot.return_value = Snapshot.build(Decimal("1000"), ZERO, ZERO)
    aggregator.net_flows.return_value = {}
    aggregator.breakdown.return_value = []
    probe = AsyncMock()
    probe.probe.return_value = CapabilityDescriptor.of(
        rel.PLUGGY_ACCOUNTS, rel.CUSTOMER_CONSULTANTS
    )
    repo = AsyncMock()
    repo.get_client.return_value = None
    repo.churn_counts.return_value = ChurnCounts()
    links = links or AsyncMock()
    return DashboardAssembler(
        InMemoryMetricsCache(),
        aggregator=aggregator,
        gate=VisibilityGate(repo=links),
        probe=probe,
        repo=repo,
        links=links,
        ttl_seconds=60,
        clock=lambda: NOW,
    )


@pytest.fixture
def as_customer():
    app.dependency_overrides[require_customer] = lambda: SimpleNamespace(
        id="u1", role="customer", is_active=True
    )
    app.dependency_overrides[get_db_session] = _fake_db


@pytest.fixture
def as_consultant():
    app.dependency_overrides[require_consultant] = lambda: SimpleNamespace(
        id="c1", role="consultant", is_active=True
    )
    app.dependency_overrides[get_db_session] = _fake_db


@pytest.fixture
def as_admin():
    app.dependency_overrides[require_admin] = lambda: SimpleNamespace(
        id="a1", role="admin", is_active=True
    )
    app.dependency_overrides[get_db_session] = _fake_db


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_slow_request_logged_at_warning(self, client, caplog, monkeypatch):
        monkeypatch.setattr(settings, "SLOW_REQUEST_MS", 0)

        with caplog.at_level(logging.INFO, logger="wm.request"):
            resp = await client.get("/health")

        record = next(r for r in caplog.records if r.name == "wm.request")
        assert record.levelno == logging.WARNING
        assert resp.headers["X-Request-ID"] in record.getMessage()


class TestCustomerSummary:
    async def test_summary_envelope_with_string_amounts(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/summary")

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["snapshot"]["cash"] == "1000.00"
        assert body["data"]["period"]["bucket"] == "2026-10"
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_month_out_of_range_is_422(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/summary", params={"month": 13})

        assert resp.status_code == 422

    async def test_future_period_is_422_with_code(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/summary", params={"year": 2027})

        assert resp.status_code == 422
        assert resp.json()["code"] == 3001

    async def test_requires_token(self, client):
        resp = await client.get("/api/v1/dashboard/summary")
        assert resp.status_code == 401


class TestNetWorthEvolution:
    async def test_points_oldest_first(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/net-worth-evolution", params={"months": 3})

        assert resp.status_code == 200
        assert resp.json()["data"] == [
            {"month": "2026-08", "net_worth": "1000.00"},
            {"month": "2026-09", "net_worth": "1000.00"},
            {"month": "2026-10", "net_worth": "1000.00"},
        ]

    async def test_defaults_to_seven_months(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/net-worth-evolution")

        assert len(resp.json()["data"]) == 7

    async def test_months_bounded(self, client, as_customer):
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler()

        resp = await client.get("/api/v1/dashboard/net-worth-evolution", params={"months": 25})

        assert resp.status_code == 422


class TestConsultantClientViews:
    async def test_denied_snapshot_is_200_with_reason(self, client, as_consultant):
        links = AsyncMock()
        links.get_link.return_value = None
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler(links)

        resp = await client.get("/api/v1/consultant/clients/u1/snapshot")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["visibility"] == {"allowed": False, "reason": "no_link"}
        assert data["snapshot"] is None

    async def test_profile_without_link_is_404(self, client, as_consultant):
        links = AsyncMock()
        links.get_link.return_value = None
        app.dependency_overrides[get_dashboard_assembler] = lambda: _assembler(links)

        resp = await client.get("/api/v1/consultant/clients/u1")

        assert resp.status_code == 404
        assert resp.json()["code"] == 2004


class TestRelationshipRoutes:
    async def test_accept(self, client, as_customer):
        service = AsyncMock()
        service.accept_invitation.return_value = LinkStateResponse(
            id="link-1", consultant_id="c1", customer_id="u1", status="active", can_view_all=True
        )
        app.dependency_overrides[get_relationship_service] = lambda: service

        resp = await client.post("/api/v1/customer/invitations/link-1/accept")

        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "active"
        assert service.accept_invitation.await_args.args[1:] == ("u1", "link-1")

    async def test_expired_invitation(self, client, as_customer):
        service = AsyncMock()
        service.accept_invitation.side_effect = InvitationExpiredError("link-1")
        app.dependency_overrides[get_relationship_service] = lambda: service

        resp = await client.post("/api/v1/customer/invitations/link-1/accept")

        assert resp.status_code == 422
        assert resp.json()["code"] == 2002

    async def test_empty_note_rejected(self, client, as_consultant):
        app.dependency_overrides[get_relationship_service] = lambda: AsyncMock()

        resp = await client.post("/api/v1/consultant/clients/u1/notes", json={"content": ""})

        assert resp.status_code == 422


class TestAdminRoutes:
    async def test_invalid_status_rejected(self, client, as_admin):
        app.dependency_overrides[get_admin_service] = lambda: AsyncMock()

        resp = await client.patch("/api/v1/admin/users/u1/status", json={"status": "frozen"})

        assert resp.status_code == 422

    async def test_block(self, client, as_admin):
        service = AsyncMock()
        service.set_status.return_value = {"user_id": "u1", "status": "blocked", "invalidated": 3}
        app.dependency_overrides[get_admin_service] = lambda: service

        resp = await client.patch("/api/v1/admin/users/u1/status", json={"status": "blocked"})

        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "blocked"
