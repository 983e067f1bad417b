"""ent_billing REST API.

The Stripe webhook speaks the processor-facing contract:
    200 {"received": true, "outcome": ...}
    400 {"error": ...}   signature or malformed-event failure
    500 {"error": ...}   anything else (processor retries)
All other endpoints require JWT authentication and use ApiResponse.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_billing.api.dependencies import (
    get_billing_service,
    get_dispatcher,
    get_reconciler,
    get_verifier,
)
from src.ent_billing.application.reconciler import EntitlementReconciler
from src.ent_billing.application.schemas import CheckoutRequest, WebhookAck
from src.ent_billing.application.service import BillingApplicationService
from src.ent_billing.domain.verifier import EventVerifier
from src.ent_common.database import get_db_session
from src.ent_common.errors import AppError, AuthenticationError, MalformedEventError
from src.ent_common.response import ApiResponse, success_response
from src.ent_gateway.auth.dependencies import get_current_user_id
from src.ent_notify.application.dispatcher import BestEffortDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, stripe-signature",
}


@router.options("/webhook/stripe")
async def stripe_webhook_preflight() -> Response:
    return Response(status_code=200, headers=_CORS_HEADERS)


@router.post("/webhook/stripe")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    verifier: Annotated[EventVerifier, Depends(get_verifier)],
    reconciler: Annotated[EntitlementReconciler, Depends(get_reconciler)],
    dispatcher: Annotated[BestEffortDispatcher, Depends(get_dispatcher)],
) -> JSONResponse:
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = verifier.verify(payload, signature)
        result = await reconciler.handle(db, event)
    except (AuthenticationError, MalformedEventError) as exc:
        logger.warning("Webhook rejected: %s", exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message}, headers=_CORS_HEADERS)
    except Exception as exc:
        logger.exception("Webhook processing failed")
        message = exc.message if isinstance(exc, AppError) else (str(exc) or type(exc).__name__)
        return JSONResponse(status_code=500, content={"error": message}, headers=_CORS_HEADERS)

    if result.side_effects:
        background_tasks.add_task(dispatcher.run, result.side_effects)
    return JSONResponse(
        status_code=200,
        content=WebhookAck.from_result(result).model_dump(),
        headers=_CORS_HEADERS,
    )


@router.get("/plans")
async def list_plans(
    service: Annotated[BillingApplicationService, Depends(get_billing_service)],
    request: Request,
) -> ApiResponse:
    return success_response(service.list_plans().model_dump(), request)


@router.post("/checkout")
async def create_checkout(
    body: CheckoutRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BillingApplicationService, Depends(get_billing_service)],
    request: Request,
) -> ApiResponse:
    data = await service.create_checkout(db, user_id, body.price_id)
    return success_response(data.model_dump(), request)


@router.post("/subscription/sync")
async def sync_subscription(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BillingApplicationService, Depends(get_billing_service)],
    request: Request,
) -> ApiResponse:
    data = await service.sync_subscription(db, user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/subscription/cancel")
async def cancel_subscription(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BillingApplicationService, Depends(get_billing_service)],
    request: Request,
) -> ApiResponse:
    data = await service.cancel_subscription(db, user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/subscription/reactivate")
async def reactivate_subscription(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BillingApplicationService, Depends(get_billing_service)],
    request: Request,
) -> ApiResponse:
    data = await service.reactivate_subscription(db, user_id)
    return success_response(data.model_dump(mode="json"), request)
