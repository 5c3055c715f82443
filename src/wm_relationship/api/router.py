"""wm_relationship REST API: invitations, sharing flag, client notes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.application.invalidation import MetricsInvalidator
from src.wm_cache.application.provider import get_metrics_cache
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_common.database import get_db_session
from src.wm_common.response import ApiResponse, success_response
from src.wm_gateway.auth.dependencies import require_consultant, require_customer
from src.wm_gateway.user.db_models import UserModel
from src.wm_relationship.application.schemas import NoteCreateRequest, SharingUpdateRequest
from src.wm_relationship.application.service import RelationshipService

router = APIRouter(tags=["relationship"])


def get_relationship_service(
    cache: Annotated[MetricsCacheProtocol, Depends(get_metrics_cache)],
) -> RelationshipService:
    return RelationshipService(MetricsInvalidator(cache))


_Service = Annotated[RelationshipService, Depends(get_relationship_service)]
_Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/customer/invitations/{link_id}/accept")
async def accept_invitation(
    link_id: str,
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.accept_invitation(db, str(current_user.id), link_id)
    return success_response(data, request)


@router.post("/customer/invitations/{link_id}/decline")
async def decline_invitation(
    link_id: str,
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.decline_invitation(db, str(current_user.id), link_id)
    return success_response(data, request)


@router.post("/customer/consultants/{link_id}/disconnect")
async def disconnect_consultant(
    link_id: str,
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.disconnect(db, str(current_user.id), link_id)
    return success_response(data, request)


@router.patch("/customer/consultants/{link_id}")
async def update_sharing(
    link_id: str,
    body: SharingUpdateRequest,
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.update_sharing(db, str(current_user.id), link_id, body.can_view_all)
    return success_response(data, request)


@router.post("/consultant/clients/{customer_id}/notes", status_code=201)
async def add_client_note(
    customer_id: str,
    body: NoteCreateRequest,
    current_user: Annotated[UserModel, Depends(require_consultant)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.add_note(db, str(current_user.id), customer_id, body.content)
    return success_response(data, request)


@router.delete("/consultant/clients/{customer_id}/notes/{note_id}")
async def delete_client_note(
    customer_id: str,
    note_id: str,
    current_user: Annotated[UserModel, Depends(require_consultant)],
    db: _Db,
    service: _Service,
    request: Request,
) -> ApiResponse:
    data = await service.delete_note(db, str(current_user.id), customer_id, note_id)
    return success_response(data, request)
