"""ent_account REST API — 2 read-only endpoints, both require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ent_account.application.service import AccountApplicationService
from src.ent_account.infrastructure.cache import EntitlementCache
from src.ent_account.infrastructure.persistence import AccountRepository
from src.ent_common.database import get_db_session
from src.ent_common.redis_client import get_redis
from src.ent_common.response import ApiResponse, success_response
from src.ent_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService(
    repo=AccountRepository(),
    cache=EntitlementCache(get_redis, ttl_seconds=settings.ENTITLEMENT_CACHE_TTL_SECONDS),
)


def get_account_service() -> AccountApplicationService:
    return _service


@router.get("/entitlement")
async def get_entitlement(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_entitlement(db, user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/ledger")
async def list_ledger(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await service.list_ledger(db, user_id, cursor, limit, entry_type)
    return success_response(data.model_dump(), request)
