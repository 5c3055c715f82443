"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class SubjectRole(str, Enum):
    CUSTOMER = "customer"
    CONSULTANT = "consultant"
    ADMIN = "admin"
    PLATFORM = "platform"


class LinkStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"


class SourceGeneration(str, Enum):
    """Which generation of tables a figure was read from."""
    AGGREGATOR = "aggregator"  # externally-synced, decimal currency units
    LEGACY = "legacy"          # ledger-style, minor units (cents)


class Component(str, Enum):
    CASH = "cash"
    INVESTMENTS = "investments"
    DEBT = "debt"
    FLOWS = "flows"


class PeriodKind(str, Enum):
    MONTH = "month"
    YEAR = "year"


class DenialReason(str, Enum):
    NO_LINK = "no_link"
    LINK_NOT_ACTIVE = "link_not_active"
    SHARING_DISABLED = "sharing_disabled"


class UserStatus(str, Enum):
    """Admin-facing view of users.is_active."""
    ACTIVE = "active"
    BLOCKED = "blocked"

    @classmethod
    def of(cls, is_active: bool) -> "UserStatus":
        return cls.ACTIVE if is_active else cls.BLOCKED
