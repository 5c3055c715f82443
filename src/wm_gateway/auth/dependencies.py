"""FastAPI dependencies: get_current_user and role guards.

Usage in any protected router:
    from src.wm_gateway.auth.dependencies import require_role

    @router.get("/consultant/dashboard/metrics")
    async def metrics(user: Annotated[UserModel, Depends(require_role(SubjectRole.CONSULTANT))]):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.database import get_db_session
from src.wm_common.enums import SubjectRole, UserStatus
from src.wm_common.errors import AccountDisabledError, InvalidCredentialsError, RoleRequiredError
from src.wm_gateway.auth.jwt_handler import decode_token
from src.wm_gateway.user.db_models import UserModel

# tokenUrl points at the platform auth service (used for the Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserModel:
    """Validate the Bearer token and load the user.

    Raises HTTP 401 if the token is missing, invalid, or expired, or the
    user no longer exists. Raises AccountDisabledError for blocked users.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if user.status == UserStatus.BLOCKED:
        raise AccountDisabledError()

    return user


def require_role(role: SubjectRole) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that only lets users with *role* through."""

    async def _guard(
        current_user: Annotated[UserModel, Depends(get_current_user)],
    ) -> UserModel:
        if current_user.role != role.value:
            raise RoleRequiredError(role.value)
        return current_user

    _guard.__name__ = f"require_{role.value}"
    return _guard


require_customer = require_role(SubjectRole.CUSTOMER)
require_consultant = require_role(SubjectRole.CONSULTANT)
require_admin = require_role(SubjectRole.ADMIN)
