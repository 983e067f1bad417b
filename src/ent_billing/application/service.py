"""BillingApplicationService — user-initiated billing operations.

Checkout creation stamps the metadata the webhook reconciler relies on
(`user_id`, `type`, `credits`, `price_id`; subscription metadata `user_id`).
Subscription cancel/reactivate only flip `cancel_at_period_end` at the
processor; the account's status then changes through webhooks.
"""

import logging

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_account.application.schemas import EntitlementResponse
from src.ent_account.domain.models import Account
from src.ent_account.domain.repository import AccountRepositoryProtocol
from src.ent_account.infrastructure.cache import EntitlementCache
from src.ent_billing.application.schemas import (
    CheckoutResponse,
    CreditPackageItem,
    PlanItem,
    PlansResponse,
    SubscriptionActionResponse,
)
from src.ent_billing.domain.config import BillingConfig
from src.ent_billing.domain.models import SubscriptionPayload, map_processor_status
from src.ent_billing.domain.plans import (
    CREDIT_PACKAGES,
    SUBSCRIPTION_PLANS,
    offered_packages,
    offered_plans,
    resolve_plan,
)
from src.ent_billing.domain.repository import ProcessorGatewayProtocol
from src.ent_common.datetime_utils import from_unix
from src.ent_common.enums import CheckoutKind
from src.ent_common.errors import (
    AccountNotFoundError,
    NoSubscriptionError,
    UnresolvedPlanError,
)

logger = logging.getLogger(__name__)


class BillingApplicationService:
    def __init__(
        self,
        config: BillingConfig,
        account_repo: AccountRepositoryProtocol,
        gateway: ProcessorGatewayProtocol,
        cache: EntitlementCache | None = None,
    ) -> None:
        self._config = config
        self._accounts = account_repo
        self._gateway = gateway
        self._cache = cache

    def list_plans(self) -> PlansResponse:
        return PlansResponse(
            plans=[PlanItem.from_domain(p) for p in offered_plans()],
            credit_packages=[CreditPackageItem.from_domain(p) for p in offered_packages()],
        )

    async def create_checkout(
        self, db: AsyncSession, user_id: str, price_id: str
    ) -> CheckoutResponse:
        account = await self._require_account(db, user_id)

        plan = SUBSCRIPTION_PLANS.get(price_id)
        package = CREDIT_PACKAGES.get(price_id)
        if plan is None and package is None:
            raise UnresolvedPlanError(price_id)

        kind = CheckoutKind.SUBSCRIPTION if plan is not None else CheckoutKind.CREDITS
        mode = "subscription" if plan is not None else "payment"
        metadata = {
            "user_id": user_id,
            "type": kind.value,
            "credits": str(package.credits) if package is not None else "0",
            "price_id": price_id,
        }
        subscription_metadata = {"user_id": user_id} if plan is not None else None

        customer_id = await self._gateway.find_or_create_customer(account.email, user_id)
        base_url = self._config.app_base_url.rstrip("/")
        session_id, url = await self._gateway.create_checkout_session(
            customer_id=customer_id,
            price_id=price_id,
            mode=mode,
            success_url=f"{base_url}/pricing?success=true&type={kind.value}",
            cancel_url=f"{base_url}/pricing?canceled=true",
            metadata=metadata,
            subscription_metadata=subscription_metadata,
        )
        logger.info(
            "Checkout session %s created for user %s (price=%s, mode=%s)",
            session_id,
            user_id,
            price_id,
            mode,
        )
        return CheckoutResponse(session_id=session_id, url=url, mode=mode)

    async def sync_subscription(self, db: AsyncSession, user_id: str) -> EntitlementResponse:
        """Read the subscription back from the processor and store status, plan, end date."""
        account = await self._require_account(db, user_id)
        if not account.subscription_ref:
            raise NoSubscriptionError(user_id)

        subscription = await self._gateway.retrieve_subscription(account.subscription_ref)
        try:
            plan_name: str | None = resolve_plan(subscription.price_id).plan
        except UnresolvedPlanError:
            logger.warning(
                "Subscription %s has unknown price %s; keeping plan %s",
                subscription.id,
                subscription.price_id,
                account.plan,
            )
            plan_name = account.plan

        try:
            updated = await self._accounts.set_subscription_state(
                db,
                user_id,
                plan_name,
                map_processor_status(subscription.status),
                from_unix(subscription.period_end),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._invalidate(user_id)
        return EntitlementResponse.from_domain(updated)

    async def cancel_subscription(
        self, db: AsyncSession, user_id: str
    ) -> SubscriptionActionResponse:
        return await self._set_cancel_at_period_end(db, user_id, cancel=True)

    async def reactivate_subscription(
        self, db: AsyncSession, user_id: str
    ) -> SubscriptionActionResponse:
        return await self._set_cancel_at_period_end(db, user_id, cancel=False)

    async def _set_cancel_at_period_end(
        self, db: AsyncSession, user_id: str, cancel: bool
    ) -> SubscriptionActionResponse:
        account = await self._require_account(db, user_id)
        if not account.subscription_ref:
            raise NoSubscriptionError(user_id)
        subscription: SubscriptionPayload = await self._gateway.set_cancel_at_period_end(
            account.subscription_ref, cancel
        )
        logger.info(
            "Subscription %s cancel_at_period_end=%s for user %s",
            subscription.id,
            subscription.cancel_at_period_end,
            user_id,
        )
        return SubscriptionActionResponse(
            subscription_id=subscription.id,
            cancel_at_period_end=subscription.cancel_at_period_end,
            current_period_end=from_unix(subscription.period_end),
        )

    async def _require_account(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._accounts.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def _invalidate(self, user_id: str) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.invalidate(user_id)
        except RedisError as exc:
            logger.warning("Entitlement cache invalidation failed for %s: %s", user_id, exc)
