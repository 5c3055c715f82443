"""SourceResolver: pick exactly one generation per component.

Both generations describe the same real-world money, so they are never
summed together. The aggregator table wins whenever it exists; the legacy
table is only read when the aggregator table is absent. Precedence is
decided by capability, never by whether the aggregator figure is zero.
"""

from src.wm_common.enums import Component, SourceGeneration
from src.wm_snapshot.domain import relations as rel
from src.wm_snapshot.domain.models import CapabilityDescriptor, SourceSpec

AGGREGATOR_CASH = SourceSpec(
    component=Component.CASH,
    generation=SourceGeneration.AGGREGATOR,
    relation=rel.PLUGGY_ACCOUNTS,
    value_column="current_balance",
    scale=1,
)
LEGACY_CASH = SourceSpec(
    component=Component.CASH,
    generation=SourceGeneration.LEGACY,
    relation=rel.BANK_ACCOUNTS,
    value_column="balance_cents",
    scale=100,
)

AGGREGATOR_INVESTMENTS = SourceSpec(
    component=Component.INVESTMENTS,
    generation=SourceGeneration.AGGREGATOR,
    relation=rel.PLUGGY_INVESTMENTS,
    value_column="current_value",
    scale=1,
    type_column="type",
)
LEGACY_INVESTMENTS = SourceSpec(
    component=Component.INVESTMENTS,
    generation=SourceGeneration.LEGACY,
    relation=rel.HOLDINGS,
    value_column="market_value_cents",
    scale=100,
    type_column="type",
)

AGGREGATOR_DEBT = SourceSpec(
    component=Component.DEBT,
    generation=SourceGeneration.AGGREGATOR,
    relation=rel.PLUGGY_CREDIT_CARDS,
    value_column="balance",
    scale=1,
)
LEGACY_DEBT = SourceSpec(
    component=Component.DEBT,
    generation=SourceGeneration.LEGACY,
    relation=rel.CARD_INVOICES,
    value_column="total_cents",
    scale=100,
    predicate="status = 'open'",
)

AGGREGATOR_FLOWS = SourceSpec(
    component=Component.FLOWS,
    generation=SourceGeneration.AGGREGATOR,
    relation=rel.PLUGGY_TRANSACTIONS,
    value_column="amount",
    scale=1,
    date_column="date",
)
LEGACY_FLOWS = SourceSpec(
    component=Component.FLOWS,
    generation=SourceGeneration.LEGACY,
    relation=rel.TRANSACTIONS,
    value_column="amount_cents",
    scale=100,
    date_column="occurred_at",
)

# Newest generation first.
PREFERENCE: dict[Component, tuple[SourceSpec, ...]] = {
    Component.CASH: (AGGREGATOR_CASH, LEGACY_CASH),
    Component.INVESTMENTS: (AGGREGATOR_INVESTMENTS, LEGACY_INVESTMENTS),
    Component.DEBT: (AGGREGATOR_DEBT, LEGACY_DEBT),
    Component.FLOWS: (AGGREGATOR_FLOWS, LEGACY_FLOWS),
}


class SourceResolver:
    def resolve(
        self, component: Component, caps: CapabilityDescriptor
    ) -> SourceSpec | None:
        for spec in PREFERENCE[component]:
            if caps.has(spec.relation):
                return spec
        return None

    def resolve_cash(self, caps: CapabilityDescriptor) -> SourceSpec | None:
        return self.resolve(Component.CASH, caps)

    def resolve_investments(self, caps: CapabilityDescriptor) -> SourceSpec | None:
        return self.resolve(Component.INVESTMENTS, caps)

    def resolve_debt(self, caps: CapabilityDescriptor) -> SourceSpec | None:
        return self.resolve(Component.DEBT, caps)

    def resolve_flows(self, caps: CapabilityDescriptor) -> SourceSpec | None:
        return self.resolve(Component.FLOWS, caps)
