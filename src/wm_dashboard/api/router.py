"""wm_dashboard REST API: customer, consultant and admin dashboards."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_cache.application.provider import get_metrics_cache
from src.wm_cache.domain.protocol import MetricsCacheProtocol
from src.wm_common.database import get_db_session
from src.wm_common.enums import PeriodKind
from src.wm_common.response import ApiResponse, success_response
from src.wm_dashboard.application.assembler import DashboardAssembler
from src.wm_dashboard.domain.models import Scope
from src.wm_dashboard.domain.period import Period
from src.wm_gateway.auth.dependencies import require_admin, require_consultant, require_customer
from src.wm_gateway.user.db_models import UserModel

router = APIRouter(tags=["dashboard"])


def get_dashboard_assembler(
    cache: Annotated[MetricsCacheProtocol, Depends(get_metrics_cache)],
) -> DashboardAssembler:
    return DashboardAssembler(cache)


_Year = Annotated[int | None, Query(ge=2000, le=2100, description="Calendar year")]
_Month = Annotated[int | None, Query(ge=1, le=12, description="Calendar month")]


@router.get("/dashboard/summary")
async def customer_summary(
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
    year: _Year = None,
    month: _Month = None,
) -> ApiResponse:
    period = Period.parse(year, month, assembler.now())
    data = await assembler.assemble(db, Scope.customer(str(current_user.id)), period)
    return success_response(data, request)


@router.get("/dashboard/net-worth-evolution")
async def net_worth_evolution(
    current_user: Annotated[UserModel, Depends(require_customer)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
    months: Annotated[int, Query(ge=1, le=24, description="Months to chart")] = 7,
) -> ApiResponse:
    """[{month, net_worth}] oldest first, ending with the current month."""
    data = await assembler.net_worth_evolution(db, str(current_user.id), months)
    return success_response(data.points, request)


@router.get("/consultant/dashboard/metrics")
async def consultant_metrics(
    current_user: Annotated[UserModel, Depends(require_consultant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
    year: _Year = None,
    month: _Month = None,
) -> ApiResponse:
    period = Period.parse(year, month, assembler.now())
    data = await assembler.assemble(db, Scope.book(str(current_user.id)), period)
    return success_response(data, request)


@router.get("/consultant/clients/{customer_id}")
async def client_profile(
    customer_id: str,
    current_user: Annotated[UserModel, Depends(require_consultant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
) -> ApiResponse:
    data = await assembler.client_profile(db, str(current_user.id), customer_id)
    return success_response(data, request)


@router.get("/consultant/clients/{customer_id}/snapshot")
async def client_snapshot(
    customer_id: str,
    current_user: Annotated[UserModel, Depends(require_consultant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
) -> ApiResponse:
    """200 in both cases: check data.visibility.allowed before reading data.snapshot."""
    data = await assembler.client_snapshot(db, str(current_user.id), customer_id)
    return success_response(data, request)


@router.get("/admin/dashboard/metrics")
async def platform_metrics(
    current_user: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    assembler: Annotated[DashboardAssembler, Depends(get_dashboard_assembler)],
    request: Request,
    year: _Year = None,
) -> ApiResponse:
    period = Period.parse(year, None, assembler.now(), default_kind=PeriodKind.YEAR)
    data = await assembler.assemble(db, Scope.platform(), period)
    return success_response(data, request)
