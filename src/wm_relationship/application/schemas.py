"""Pydantic request/response schemas for wm_relationship."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.wm_dashboard.domain.models import NoteRecord
from src.wm_visibility.domain.models import ConsultantCustomerLink


class SharingUpdateRequest(BaseModel):
    can_view_all: bool


class NoteCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class LinkStateResponse(BaseModel):
    id: str
    consultant_id: str
    customer_id: str
    status: str
    can_view_all: bool

    @classmethod
    def from_domain(cls, link: ConsultantCustomerLink) -> "LinkStateResponse":
        return cls(
            id=link.id,
            consultant_id=link.consultant_id,
            customer_id=link.customer_id,
            status=link.status,
            can_view_all=link.can_view_all,
        )


class LinkRemovedResponse(BaseModel):
    id: str
    consultant_id: str
    removed: bool = True


class NoteResponse(BaseModel):
    id: str
    customer_id: str
    content: str
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, note: NoteRecord, customer_id: str) -> "NoteResponse":
        return cls(
            id=note.id, customer_id=customer_id, content=note.content, created_at=note.created_at
        )
