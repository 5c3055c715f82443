"""Domain models for wm_visibility: pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ConsultantCustomerLink:
    id: str
    consultant_id: str
    customer_id: str
    status: str              # LinkStatus value
    can_view_all: bool       # may the consultant see full financial detail
    is_primary: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class VisibilityDecision:
    allowed: bool
    reason: str | None = None   # DenialReason value when allowed is False

    @classmethod
    def allow(cls) -> "VisibilityDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "VisibilityDecision":
        return cls(allowed=False, reason=reason)

    def as_dict(self) -> dict[str, object]:
        if self.allowed:
            return {"allowed": True}
        return {"allowed": False, "reason": self.reason}
