"""Domain models for wm_dashboard: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.wm_common.enums import SubjectRole
from src.wm_common.money import ZERO


@dataclass(frozen=True)
class Scope:
    """Whose figures a dashboard shows: one customer, one book, or the platform."""

    role: SubjectRole
    subject_id: str | None = None

    @classmethod
    def customer(cls, customer_id: str) -> "Scope":
        return cls(SubjectRole.CUSTOMER, customer_id)

    @classmethod
    def book(cls, consultant_id: str) -> "Scope":
        return cls(SubjectRole.CONSULTANT, consultant_id)

    @classmethod
    def platform(cls) -> "Scope":
        return cls(SubjectRole.PLATFORM)


@dataclass
class MonthlyCount:
    month: int
    count: int


@dataclass
class MonthlyAmount:
    month: int
    amount: Decimal = ZERO


@dataclass
class AlertRecord:
    id: str
    type: str | None
    message: str | None
    created_at: datetime | None


@dataclass
class ClientRecord:
    id: str
    full_name: str | None
    email: str | None


@dataclass
class NoteRecord:
    id: str
    content: str
    created_at: datetime | None


@dataclass
class ReportRecord:
    id: str
    type: str | None
    status: str | None
    generated_at: datetime | None
    download_url: str | None = None


@dataclass
class ChurnCounts:
    canceled: int = 0
    active_started: int = 0

