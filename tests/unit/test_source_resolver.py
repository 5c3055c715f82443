"""Tests for SourceResolver precedence."""

from src.wm_common.enums import SourceGeneration
from src.wm_snapshot.domain import relations as rel
from src.wm_snapshot.domain.models import CapabilityDescriptor
from src.wm_snapshot.domain.sources import (
    AGGREGATOR_CASH,
    LEGACY_CASH,
    LEGACY_DEBT,
    SourceResolver,
)

resolver = SourceResolver()


class TestPrecedence:
    def test_aggregator_wins_when_both_present(self) -> None:
        caps = CapabilityDescriptor.of(rel.PLUGGY_ACCOUNTS, rel.BANK_ACCOUNTS)
        assert resolver.resolve_cash(caps) == AGGREGATOR_CASH

    def test_legacy_when_aggregator_absent(self) -> None:
        caps = CapabilityDescriptor.of(rel.BANK_ACCOUNTS)
        assert resolver.resolve_cash(caps) == LEGACY_CASH

    def test_none_when_neither_present(self) -> None:
        caps = CapabilityDescriptor()
        assert resolver.resolve_cash(caps) is None
        assert resolver.resolve_investments(caps) is None
        assert resolver.resolve_debt(caps) is None
        assert resolver.resolve_flows(caps) is None

    def test_components_resolve_independently(self) -> None:
        caps = CapabilityDescriptor.of(rel.PLUGGY_ACCOUNTS, rel.HOLDINGS, rel.CARD_INVOICES)

        assert resolver.resolve_cash(caps).generation == SourceGeneration.AGGREGATOR
        assert resolver.resolve_investments(caps).generation == SourceGeneration.LEGACY
        assert resolver.resolve_debt(caps) == LEGACY_DEBT


class TestSpecs:
    def test_units(self) -> None:
        assert AGGREGATOR_CASH.scale == 1
        assert LEGACY_CASH.scale == 100

    def test_legacy_debt_only_open_invoices(self) -> None:
        assert LEGACY_DEBT.predicate == "status = 'open'"

    def test_investments_carry_type_column(self) -> None:
        caps = CapabilityDescriptor.of(rel.PLUGGY_INVESTMENTS)
        assert resolver.resolve_investments(caps).type_column == "type"

    def test_flows_are_dated(self) -> None:
        legacy = resolver.resolve_flows(CapabilityDescriptor.of(rel.TRANSACTIONS))
        aggregator = resolver.resolve_flows(CapabilityDescriptor.of(rel.PLUGGY_TRANSACTIONS))
        assert legacy.date_column == "occurred_at"
        assert aggregator.date_column == "date"
