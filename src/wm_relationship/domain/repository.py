"""RelationshipRepository Protocol: link and client-note writes."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_dashboard.domain.models import NoteRecord
from src.wm_visibility.domain.models import ConsultantCustomerLink


class RelationshipRepositoryProtocol(Protocol):
    async def get_customer_link(
        self, db: AsyncSession, link_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None: ...

    async def activate_link(
        self, db: AsyncSession, link_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None: ...

    async def expire_link(self, db: AsyncSession, link_id: str) -> None: ...

    async def delete_link(
        self, db: AsyncSession, link_id: str, customer_id: str, only_active: bool
    ) -> str | None: ...

    async def update_sharing(
        self, db: AsyncSession, link_id: str, customer_id: str, can_view_all: bool
    ) -> ConsultantCustomerLink | None: ...

    async def insert_note(
        self, db: AsyncSession, consultant_id: str, customer_id: str, content: str
    ) -> NoteRecord: ...

    async def delete_note(
        self, db: AsyncSession, note_id: str, consultant_id: str, customer_id: str
    ) -> bool: ...
