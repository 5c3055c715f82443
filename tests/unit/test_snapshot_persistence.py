"""Unit tests for SnapshotRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.wm_common.money import ZERO
from src.wm_snapshot.domain.models import TypeGroup
from src.wm_snapshot.domain.sources import (
    AGGREGATOR_CASH,
    AGGREGATOR_DEBT,
    LEGACY_DEBT,
    LEGACY_FLOWS,
    LEGACY_INVESTMENTS,
)
from src.wm_snapshot.infrastructure.persistence import SnapshotRepository


def _row(**kwargs):
    row = MagicMock()
    for key, value in kwargs.items():
        setattr(row, key, value)
    return row


@pytest.fixture
def db():
    session = MagicMock()
    session.begin_nested = MagicMock()
    return session


def _sql(db) -> str:
    return db.execute.await_args.args[0].text


class TestSumBySubject:
    async def test_returns_raw_sums_keyed_by_str_id(self, db):
        result = MagicMock()
        result.fetchall.return_value = [
            _row(subject_id=7, total=Decimal("1000.00")),
            _row(subject_id="u2", total=None),
        ]
        db.execute = AsyncMock(return_value=result)

        sums = await SnapshotRepository().sum_by_subject(db, AGGREGATOR_CASH, ["7", "u2"])

        assert sums == {"7": Decimal("1000.00"), "u2": ZERO}
        params = db.execute.await_args.args[1]
        assert params == {"subject_ids": ["7", "u2"]}
        assert "FROM pluggy_accounts" in _sql(db)
        assert "GROUP BY user_id" in _sql(db)
        db.begin_nested.assert_called_once()

    async def test_empty_ids_skip_query(self, db):
        db.execute = AsyncMock()
        assert await SnapshotRepository().sum_by_subject(db, AGGREGATOR_CASH, []) == {}
        db.execute.assert_not_awaited()

    async def test_static_predicate_applied(self, db):
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute = AsyncMock(return_value=result)

        await SnapshotRepository().sum_by_subject(db, LEGACY_DEBT, ["u1"])

        assert "status = 'open'" in _sql(db)
        assert "FROM card_invoices" in _sql(db)

    async def test_since_filters_on_date_column(self, db):
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute = AsyncMock(return_value=result)
        since = datetime(2026, 10, 1, tzinfo=UTC)

        await SnapshotRepository().sum_by_subject(db, LEGACY_FLOWS, ["u1"], since)

        assert "occurred_at >= :since" in _sql(db)
        assert db.execute.await_args.args[1]["since"] == since

    async def test_errors_propagate_to_caller(self, db):
        db.execute = AsyncMock(side_effect=RuntimeError("relation does not exist"))
        with pytest.raises(RuntimeError):
            await SnapshotRepository().sum_by_subject(db, AGGREGATOR_CASH, ["u1"])


class TestSumEveryOwner:
    async def test_no_ids_groups_every_owner(self, db):
        result = MagicMock()
        result.fetchall.return_value = [
            _row(subject_id="u1", total=Decimal("42.50")),
            _row(subject_id="u9", total=Decimal("7")),
        ]
        db.execute = AsyncMock(return_value=result)

        sums = await SnapshotRepository().sum_by_subject(db, AGGREGATOR_DEBT, None)

        assert sums == {"u1": Decimal("42.50"), "u9": Decimal("7")}
        assert ":subject_ids" not in _sql(db)
        assert "GROUP BY user_id" in _sql(db)
        assert db.execute.await_args.args[1] == {}

    async def test_no_ids_with_since(self, db):
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute = AsyncMock(return_value=result)
        since = datetime(2026, 10, 1, tzinfo=UTC)

        await SnapshotRepository().sum_by_subject(db, LEGACY_FLOWS, None, since)

        assert "WHERE occurred_at >= :since" in _sql(db)
        assert db.execute.await_args.args[1] == {"since": since}

class TestGroupByType:
    async def test_rows_to_type_groups(self, db):
        result = MagicMock()
        result.fetchall.return_value = [_row(type="stocks", count=3, total=Decimal("900"))]
        db.execute = AsyncMock(return_value=result)

        groups = await SnapshotRepository().group_by_type(db, LEGACY_INVESTMENTS, None)

        assert groups == [TypeGroup(type="stocks", count=3, raw_total=Decimal("900"))]
        assert "GROUP BY type" in _sql(db)
        assert db.execute.await_args.args[1] == {}

    async def test_requires_type_column(self, db):
        with pytest.raises(ValueError):
            await SnapshotRepository().group_by_type(db, AGGREGATOR_CASH, None)

    async def test_empty_subject_set(self, db):
        db.execute = AsyncMock()
        assert await SnapshotRepository().group_by_type(db, LEGACY_INVESTMENTS, []) == []
        db.execute.assert_not_awaited()


class TestRelationExists:
    async def test_select_one(self, db):
        db.execute = AsyncMock()
        assert await SnapshotRepository().relation_exists(db, "holdings") is True
        assert _sql(db) == "SELECT 1 FROM holdings LIMIT 1"

    async def test_unknown_relation_rejected(self, db):
        db.execute = AsyncMock()
        with pytest.raises(ValueError):
            await SnapshotRepository().relation_exists(db, "users; DROP TABLE users")
        db.execute.assert_not_awaited()
