"""LinkRepository: read access to customer_consultants.

A NULL can_view_all reads as true: that is the column's stored default
and what customers see on their own consultant list.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_visibility.domain.models import ConsultantCustomerLink

LINK_COLUMNS = """
    id, consultant_id, customer_id, status,
    COALESCE(can_view_all, true) AS can_view_all,
    COALESCE(is_primary, false) AS is_primary,
    created_at, updated_at
"""

_GET_LINK_SQL = text(f"""
    SELECT {LINK_COLUMNS}
    FROM customer_consultants
    WHERE consultant_id = :consultant_id AND customer_id = :customer_id
    ORDER BY (status = 'active') DESC, created_at DESC
    LIMIT 1
""")

_LIST_FOR_CONSULTANT_SQL = text(f"""
    SELECT {LINK_COLUMNS}
    FROM customer_consultants
    WHERE consultant_id = :consultant_id
    ORDER BY created_at ASC
""")

_CONSULTANTS_FOR_CUSTOMER_SQL = text("""
    SELECT DISTINCT consultant_id
    FROM customer_consultants
    WHERE customer_id = :customer_id
""")


def row_to_link(row: object) -> ConsultantCustomerLink:
    return ConsultantCustomerLink(
        id=str(row.id),  # type: ignore[attr-defined]
        consultant_id=str(row.consultant_id),  # type: ignore[attr-defined]
        customer_id=str(row.customer_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        can_view_all=bool(row.can_view_all),  # type: ignore[attr-defined]
        is_primary=bool(row.is_primary),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class LinkRepository:
    async def get_link(
        self, db: AsyncSession, consultant_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None:
        async with db.begin_nested():
            result = await db.execute(
                _GET_LINK_SQL,
                {"consultant_id": consultant_id, "customer_id": customer_id},
            )
            row = result.fetchone()
        return row_to_link(row) if row else None

    async def list_links_for_consultant(
        self, db: AsyncSession, consultant_id: str
    ) -> list[ConsultantCustomerLink]:
        async with db.begin_nested():
            result = await db.execute(
                _LIST_FOR_CONSULTANT_SQL, {"consultant_id": consultant_id}
            )
            rows = result.fetchall()
        return [row_to_link(row) for row in rows]

    async def list_consultant_ids_for_customer(
        self, db: AsyncSession, customer_id: str
    ) -> list[str]:
        async with db.begin_nested():
            result = await db.execute(
                _CONSULTANTS_FOR_CUSTOMER_SQL, {"customer_id": customer_id}
            )
            rows = result.fetchall()
        return [str(row.consultant_id) for row in rows]
