"""Repository Protocol for consultant/customer links."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_visibility.domain.models import ConsultantCustomerLink


class LinkRepositoryProtocol(Protocol):
    async def get_link(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None: ...

    async def list_links_for_consultant(
        self, db: AsyncSession, consultant_id: str
    ) -> list[ConsultantCustomerLink]: ...

    async def list_consultant_ids_for_customer(
        self, db: AsyncSession, customer_id: str
    ) -> list[str]: ...
