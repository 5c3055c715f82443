"""Pydantic schemas for snapshot figures."""

from decimal import Decimal

from pydantic import BaseModel

from src.wm_snapshot.domain.models import BreakdownItem, Snapshot


class SnapshotOut(BaseModel):
    cash: Decimal
    investments: Decimal
    debt: Decimal
    net_worth: Decimal

    @classmethod
    def from_domain(cls, snapshot: Snapshot) -> "SnapshotOut":
        return cls(**snapshot.as_dict())


class BreakdownItemOut(BaseModel):
    type: str
    count: int
    total: Decimal

    @classmethod
    def from_domain(cls, item: BreakdownItem) -> "BreakdownItemOut":
        return cls(type=item.type, count=item.count, total=item.total)
