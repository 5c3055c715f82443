"""Admin application service: user role and block/unblock.

A role or status change moves the user in or out of platform counts and
consultant books, so each one fires MetricsInvalidator.subject_changed
after commit.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_common.enums import SubjectRole, UserStatus
from src.wm_common.errors import InvalidRoleError, UserNotFoundError

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = frozenset(
    {SubjectRole.CUSTOMER.value, SubjectRole.CONSULTANT.value, SubjectRole.ADMIN.value}
)

_UPDATE_ROLE_SQL = text("""
    UPDATE users SET role = :role, updated_at = NOW()
    WHERE id = :user_id
    RETURNING id, role, is_active
""")
_UPDATE_STATUS_SQL = text("""
    UPDATE users SET is_active = :is_active, updated_at = NOW()
    WHERE id = :user_id
    RETURNING id, role, is_active
""")


class AdminService:
    def __init__(self, invalidator: MetricsInvalidator) -> None:
        self._invalidator = invalidator

    async def change_role(self, db: AsyncSession, user_id: str, role: str) -> dict[str, Any]:
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRoleError(role)
        row = await self._update(db, _UPDATE_ROLE_SQL, {"user_id": user_id, "role": role})
        if row is None:
            raise UserNotFoundError(user_id)
        logger.info("user %s role changed to %s", user_id, role)
        cleared = await self._invalidator.subject_changed(db, user_id)
        return {"user_id": user_id, "role": row.role, "invalidated": len(cleared)}

    async def set_status(self, db: AsyncSession, user_id: str, status: str) -> dict[str, Any]:
        """status is "active" or "blocked"."""
        is_active = status == UserStatus.ACTIVE
        row = await self._update(
            db, _UPDATE_STATUS_SQL, {"user_id": user_id, "is_active": is_active}
        )
        if row is None:
            raise UserNotFoundError(user_id)
        logger.info("user %s %s", user_id, "unblocked" if is_active else "blocked")
        cleared = await self._invalidator.subject_changed(db, user_id)
        return {
            "user_id": user_id,
            "status": UserStatus.of(row.is_active).value,
            "invalidated": len(cleared),
        }

    async def _update(self, db: AsyncSession, sql: Any, params: dict[str, Any]) -> Any:
        try:
            row = (await db.execute(sql, params)).fetchone()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return row
