"""RelationshipRepository: writes to customer_consultants and client_notes.

Statements only; the service owns commit/rollback.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.errors import InternalError
from src.wm_dashboard.domain.models import NoteRecord
from src.wm_visibility.domain.models import ConsultantCustomerLink
from src.wm_visibility.infrastructure.persistence import LINK_COLUMNS, row_to_link

_GET_CUSTOMER_LINK_SQL = text(f"""
    SELECT {LINK_COLUMNS}
    FROM customer_consultants
    WHERE id = :link_id AND customer_id = :customer_id
""")

# Accepting turns wallet sharing on; the customer may switch it off later.
_ACTIVATE_LINK_SQL = text(f"""
    UPDATE customer_consultants
    SET status = 'active', can_view_all = true, updated_at = NOW()
    WHERE id = :link_id AND customer_id = :customer_id
    RETURNING {LINK_COLUMNS}
""")

_EXPIRE_LINK_SQL = text("""
    UPDATE customer_consultants
    SET status = 'expired', updated_at = NOW()
    WHERE id = :link_id
""")

_DELETE_LINK_SQL = text("""
    DELETE FROM customer_consultants
    WHERE id = :link_id AND customer_id = :customer_id
    RETURNING consultant_id
""")

_DELETE_ACTIVE_LINK_SQL = text("""
    DELETE FROM customer_consultants
    WHERE id = :link_id AND customer_id = :customer_id AND status = 'active'
    RETURNING consultant_id
""")

_UPDATE_SHARING_SQL = text(f"""
    UPDATE customer_consultants
    SET can_view_all = :can_view_all, updated_at = NOW()
    WHERE id = :link_id AND customer_id = :customer_id AND status = 'active'
    RETURNING {LINK_COLUMNS}
""")

_INSERT_NOTE_SQL = text("""
    INSERT INTO client_notes (consultant_id, customer_id, content)
    VALUES (:consultant_id, :customer_id, :content)
    RETURNING id, content, created_at
""")

_DELETE_NOTE_SQL = text("""
    DELETE FROM client_notes
    WHERE id = :note_id AND consultant_id = :consultant_id AND customer_id = :customer_id
    RETURNING id
""")


class RelationshipRepository:
    async def get_customer_link(
        self, db: AsyncSession, link_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None:
        result = await db.execute(
            _GET_CUSTOMER_LINK_SQL, {"link_id": link_id, "customer_id": customer_id}
        )
        row = result.fetchone()
        return row_to_link(row) if row else None

    async def activate_link(
        self, db: AsyncSession, link_id: str, customer_id: str
    ) -> ConsultantCustomerLink | None:
        result = await db.execute(
            _ACTIVATE_LINK_SQL, {"link_id": link_id, "customer_id": customer_id}
        )
        row = result.fetchone()
        return row_to_link(row) if row else None

    async def expire_link(self, db: AsyncSession, link_id: str) -> None:
        await db.execute(_EXPIRE_LINK_SQL, {"link_id": link_id})

    async def delete_link(
        self, db: AsyncSession, link_id: str, customer_id: str, only_active: bool
    ) -> str | None:
        """Delete the link; returns its consultant id, or None if nothing matched."""
        sql = _DELETE_ACTIVE_LINK_SQL if only_active else _DELETE_LINK_SQL
        result = await db.execute(sql, {"link_id": link_id, "customer_id": customer_id})
        row = result.fetchone()
        return str(row.consultant_id) if row else None

    async def update_sharing(
        self, db: AsyncSession, link_id: str, customer_id: str, can_view_all: bool
    ) -> ConsultantCustomerLink | None:
        result = await db.execute(
            _UPDATE_SHARING_SQL,
            {"link_id": link_id, "customer_id": customer_id, "can_view_all": can_view_all},
        )
        row = result.fetchone()
        return row_to_link(row) if row else None

    async def insert_note(
        self, db: AsyncSession, consultant_id: str, customer_id: str, content: str
    ) -> NoteRecord:
        result = await db.execute(
            _INSERT_NOTE_SQL,
            {"consultant_id": consultant_id, "customer_id": customer_id, "content": content},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("client note insert returned no rows")
        return NoteRecord(id=str(row.id), content=row.content, created_at=row.created_at)

    async def delete_note(
        self, db: AsyncSession, note_id: str, consultant_id: str, customer_id: str
    ) -> bool:
        result = await db.execute(
            _DELETE_NOTE_SQL,
            {"note_id": note_id, "consultant_id": consultant_id, "customer_id": customer_id},
        )
        return result.fetchone() is not None
