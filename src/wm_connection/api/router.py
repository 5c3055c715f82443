"""wm_connection REST API: sync completion notification."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_cache.application.provider import get_metrics_cache
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_common.database import get_db_session
from src.wm_common.response import ApiResponse, success_response
from src.wm_connection.application.service import ConnectionService
from src.wm_gateway.auth.dependencies import require_customer
from src.wm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/connections", tags=["connections"])


class SyncCompleteRequest(BaseModel):
    connection_id: str | None = None


def get_connection_service(
    cache: Annotated[MetricsCacheProtocol, Depends(get_metrics_cache)],
) -> ConnectionService:
    return ConnectionService(MetricsInvalidator(cache))


@router.post("/sync-complete")
async def sync_complete(
    body: SyncCompleteRequest,
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[ConnectionService, Depends(get_connection_service)],
    request: Request,
) -> ApiResponse:
    result = await service.sync_completed(db, str(current_user.id), body.connection_id)
    return success_response(result, request)
