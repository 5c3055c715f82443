"""Domain models for wm_snapshot: pure dataclasses, no SQLAlchemy dependency."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from src.wm_common.enums import Component, SourceGeneration
from src.wm_common.money import ZERO, non_negative, quantize


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Which optional relations exist in this deployment.

    Only valid for one request (or the probe's short TTL window). Never
    persisted: migrations can add or drop tables at any time.
    """

    present: frozenset[str] = frozenset()
    checked: frozenset[str] = frozenset()

    def has(self, relation: str) -> bool:
        return relation in self.present

    def has_all(self, *relations: str) -> bool:
        return all(r in self.present for r in relations)

    def as_dict(self) -> dict[str, bool]:
        return {r: r in self.present for r in sorted(self.checked)}

    @classmethod
    def of(cls, *relations: str) -> "CapabilityDescriptor":
        """Build a descriptor where exactly *relations* are present."""
        rels = frozenset(relations)
        return cls(present=rels, checked=rels)


@dataclass(frozen=True)
class SourceSpec:
    """Declarative description of one concrete relation feeding a component.

    Identifiers here come from the fixed catalog in sources.py and are the
    only strings ever interpolated into SQL; subject ids are always bound.
    """

    component: Component
    generation: SourceGeneration
    relation: str
    value_column: str
    scale: int                        # 1 = decimal units, 100 = cents
    owner_column: str = "user_id"
    type_column: str | None = None    # breakdown grouping (investments)
    date_column: str | None = None    # flow dating (transactions)
    predicate: str | None = None      # static row filter, e.g. open invoices only


@dataclass(frozen=True)
class Snapshot:
    """{cash, investments, debt, net_worth} for one subject.

    Components are never negative; net_worth may be.
    """

    cash: Decimal = ZERO
    investments: Decimal = ZERO
    debt: Decimal = ZERO

    @property
    def net_worth(self) -> Decimal:
        return quantize(self.cash + self.investments - self.debt)

    @classmethod
    def build(cls, cash: Decimal, investments: Decimal, debt: Decimal) -> "Snapshot":
        return cls(
            cash=quantize(non_negative(cash)),
            investments=quantize(non_negative(investments)),
            debt=quantize(non_negative(debt)),
        )

    @classmethod
    def total(cls, snapshots: Iterable["Snapshot"]) -> "Snapshot":
        cash = investments = debt = ZERO
        for s in snapshots:
            cash += s.cash
            investments += s.investments
            debt += s.debt
        return cls.build(cash, investments, debt)

    def rolled_back(self, net_flow: Decimal) -> "Snapshot":
        """Snapshot as it stood before *net_flow* moved through cash."""
        return Snapshot.build(self.cash - net_flow, self.investments, self.debt)

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "cash": self.cash,
            "investments": self.investments,
            "debt": self.debt,
            "net_worth": self.net_worth,
        }


@dataclass
class BreakdownItem:
    type: str
    count: int = 0
    total: Decimal = ZERO


@dataclass
class TypeGroup:
    """One raw GROUP BY row before normalisation into a BreakdownItem."""
    type: str | None
    count: int
    raw_total: Decimal = field(default=ZERO)
