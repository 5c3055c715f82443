# src/wm_admin/api/router.py
"""Admin REST API: user role and status."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_admin.application.service import AdminService
from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_cache.application.provider import get_metrics_cache
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_common.database import get_db_session
from src.wm_common.enums import UserStatus
from src.wm_common.response import ApiResponse, success_response
from src.wm_gateway.auth.dependencies import require_admin
from src.wm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin", tags=["admin"])


class RoleRequest(BaseModel):
    role: str


class StatusRequest(BaseModel):
    status: UserStatus


def get_admin_service(
    cache: Annotated[MetricsCacheProtocol, Depends(get_metrics_cache)],
) -> AdminService:
    return AdminService(MetricsInvalidator(cache))


@router.patch("/users/{user_id}/role")
async def change_role(
    user_id: str,
    body: RoleRequest,
    current_user: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    result = await service.change_role(db, user_id, body.role)
    return success_response(result, request)


@router.patch("/users/{user_id}/status")
async def set_status(
    user_id: str,
    body: StatusRequest,
    current_user: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    result = await service.set_status(db, user_id, body.status.value)
    return success_response(result, request)
