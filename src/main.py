"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.wm_admin.api.router import router as admin_router
from src.wm_common.database import check_database, engine
from src.wm_common.errors import AppError
from src.wm_common.redis_client import close_redis, get_redis
from src.wm_common.response import error_response
from src.wm_connection.api.router import router as connection_router
from src.wm_dashboard.api.router import router as dashboard_router
from src.wm_gateway.middleware.request_log import RequestLogMiddleware
from src.wm_relationship.api.router import router as relationship_router

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB and open the Redis pool. Shutdown: dispose."""
    await check_database()
    if settings.METRICS_CACHE_BACKEND == "redis":
        await get_redis()
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(relationship_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(connection_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}
