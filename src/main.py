"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.ent_account.api.router import router as account_router
from src.ent_billing.api.dependencies import billing_config
from src.ent_billing.api.router import router as billing_router
from src.ent_common.database import engine
from src.ent_common.errors import AppError
from src.ent_common.redis_client import close_redis, get_redis
from src.ent_common.response import error_response
from src.ent_gateway.middleware.request_log import RequestLogMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: check DB + Redis and report which billing integrations are off."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    if not billing_config.verification_enabled:
        logger.warning(
            "STRIPE_WEBHOOK_SECRET is not set: webhook events will be accepted WITHOUT "
            "signature verification"
        )
    if not billing_config.processor_configured:
        logger.warning("STRIPE_SECRET_KEY is not set: checkout and subscription read-backs are disabled")
    if not billing_config.emails_enabled:
        logger.info("RESEND_API_KEY is not set: transactional emails are disabled")
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


app.include_router(account_router, prefix="/api/v1")
app.include_router(billing_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
