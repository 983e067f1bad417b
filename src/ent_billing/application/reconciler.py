"""EntitlementReconciler — apply verified processor events to accounts.

Per event, in ONE database transaction:
  1. claim the event id (duplicate delivery → DUPLICATE, nothing applied)
  2. dispatch on event type to exactly one handler
  3. account mutation + ledger append (atomic `credits = credits + delta`)
  4. record the outcome next to the claim, commit

Any failure rolls back all of it, including the claim, so the processor's
retry re-applies the event exactly once. Emails, referral rewards and cache
invalidation are returned as `SideEffect`s for the caller to run after the
commit; they never affect the outcome.

Unknown event types are IGNORED without touching the database.
"""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_account.domain.models import Account
from src.ent_account.domain.repository import AccountRepositoryProtocol
from src.ent_account.infrastructure.cache import EntitlementCache
from src.ent_billing.domain.config import BillingConfig
from src.ent_billing.domain.models import (
    BillingEvent,
    CheckoutSessionPayload,
    InvoicePayload,
    PlanDefinition,
    ReconcileResult,
    SubscriptionPayload,
    map_processor_status,
)
from src.ent_billing.domain.plans import GENERIC_PACKAGE_NAME, find_credit_package, resolve_plan
from src.ent_billing.domain.repository import (
    ProcessedEventStoreProtocol,
    ProcessorGatewayProtocol,
)
from src.ent_common.datetime_utils import from_unix
from src.ent_common.enums import (
    BillingEventType,
    CheckoutKind,
    EmailTemplate,
    EventOutcome,
    LedgerEntryType,
)
from src.ent_common.errors import (
    AccountStoreError,
    BillingNotConfiguredError,
    MalformedEventError,
    ProcessorError,
    UnresolvedPlanError,
)
from src.ent_notify.application.dispatcher import SideEffect
from src.ent_notify.domain.repository import NotificationSenderProtocol
from src.ent_referral.application.service import ReferralService

logger = logging.getLogger(__name__)

_P = TypeVar("_P", bound=BaseModel)

RENEWAL_BILLING_REASON = "subscription_cycle"


def _parse(model: type[_P], event: BillingEvent) -> _P:
    try:
        return model.model_validate(event.payload)
    except ValidationError as exc:
        raise MalformedEventError(
            f"{event.type} payload is not a valid {model.__name__} ({exc.error_count()} errors)"
        ) from None


def _metadata_str(metadata: dict[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    if value is None or str(value).strip() == "":
        return None
    return str(value).strip()


class EntitlementReconciler:
    def __init__(
        self,
        config: BillingConfig,
        account_repo: AccountRepositoryProtocol,
        event_store: ProcessedEventStoreProtocol,
        gateway: ProcessorGatewayProtocol,
        sender: NotificationSenderProtocol,
        cache: EntitlementCache | None = None,
        referrals: ReferralService | None = None,
    ) -> None:
        self._config = config
        self._accounts = account_repo
        self._events = event_store
        self._gateway = gateway
        self._sender = sender
        self._cache = cache
        self._referrals = referrals

    async def handle(self, db: AsyncSession, event: BillingEvent) -> ReconcileResult:
        try:
            event_type = BillingEventType(event.type)
        except ValueError:
            logger.info("Ignoring unhandled event type %s (%s)", event.type, event.id)
            return ReconcileResult(event.id, event.type, EventOutcome.IGNORED)

        logger.info("Processing %s event %s", event.type, event.id)
        try:
            if not await self._events.claim(db, event.id, event.type):
                await db.rollback()
                logger.info("Event %s already processed, acknowledging without re-applying", event.id)
                return ReconcileResult(event.id, event.type, EventOutcome.DUPLICATE)

            result = await self._dispatch(db, event_type, event)
            await self._events.record_outcome(db, event.id, result.outcome, result.user_id)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Account store failure while processing %s: %s", event.id, exc)
            raise AccountStoreError(type(exc).__name__) from exc
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Event %s (%s) → %s user=%s credits=+%d",
            event.id,
            event.type,
            result.outcome.value,
            result.user_id,
            result.credits_granted,
        )
        return result

    async def _dispatch(
        self, db: AsyncSession, event_type: BillingEventType, event: BillingEvent
    ) -> ReconcileResult:
        if event_type is BillingEventType.CHECKOUT_COMPLETED:
            session = _parse(CheckoutSessionPayload, event)
            user_id = _metadata_str(session.metadata, "user_id")
            if user_id is None:
                raise MalformedEventError("checkout session metadata has no user_id")
            if _metadata_str(session.metadata, "type") == CheckoutKind.SUBSCRIPTION.value:
                return await self._activate_subscription(db, event, session, user_id)
            return await self._purchase_credits(db, event, session, user_id)
        if event_type is BillingEventType.INVOICE_PAID:
            return await self._renew_subscription(db, event, _parse(InvoicePayload, event))
        if event_type is BillingEventType.SUBSCRIPTION_UPDATED:
            return await self._sync_status(db, event, _parse(SubscriptionPayload, event))
        return await self._cancel_subscription(db, event, _parse(SubscriptionPayload, event))

    # ------------------------------------------------------------------
    # checkout.session.completed (type=subscription)
    # ------------------------------------------------------------------

    async def _activate_subscription(
        self,
        db: AsyncSession,
        event: BillingEvent,
        session: CheckoutSessionPayload,
        user_id: str,
    ) -> ReconcileResult:
        if not session.subscription:
            raise MalformedEventError("subscription checkout has no subscription reference")

        plan = await self._resolve_activation_plan(session)
        await self._accounts.activate_subscription(db, user_id, plan.plan, session.subscription)
        account, _ = await self._accounts.apply_credit_delta(
            db,
            user_id,
            plan.credits,
            LedgerEntryType.SUBSCRIPTION_GRANT,
            reference_type="SUBSCRIPTION",
            reference_id=session.subscription,
            event_id=event.id,
            description=f"Subscription credits ({plan.plan})",
        )

        effects = self._cache_effects(event.id, user_id)
        recipient = session.recipient_email or account.email
        if recipient:
            effects.append(self._email_effect(
                event.id,
                recipient,
                EmailTemplate.SUBSCRIPTION_WELCOME,
                {
                    "plan_name": plan.display_name,
                    "price": plan.display_price,
                    "credits": plan.credits,
                    "interval": plan.interval.value,
                    "new_balance": account.credits,
                },
            ))
        if self._referrals is not None:
            referrals = self._referrals
            effects.append(SideEffect(
                name="referral:complete",
                action=lambda: referrals.complete(user_id),
                event_id=event.id,
            ))
        return ReconcileResult(
            event.id,
            event.type,
            EventOutcome.APPLIED,
            user_id=user_id,
            credits_granted=plan.credits,
            balance_after=account.credits,
            side_effects=effects,
        )

    async def _resolve_activation_plan(self, session: CheckoutSessionPayload) -> PlanDefinition:
        """Price from metadata, else processor read-back; unknown → default plan (logged)."""
        price_id = _metadata_str(session.metadata, "price_id")
        try:
            if price_id is None and session.subscription:
                subscription = await self._gateway.retrieve_subscription(session.subscription)
                price_id = subscription.price_id
            return resolve_plan(price_id)
        except (UnresolvedPlanError, ProcessorError, BillingNotConfiguredError) as exc:
            plan = resolve_plan(self._config.default_plan_price_id)
            logger.warning(
                "Could not resolve plan for subscription %s (%s); FALLING BACK to default plan %s",
                session.subscription,
                exc.message,
                plan.plan,
            )
            return plan

    # ------------------------------------------------------------------
    # checkout.session.completed (type=credits or untagged)
    # ------------------------------------------------------------------

    async def _purchase_credits(
        self,
        db: AsyncSession,
        event: BillingEvent,
        session: CheckoutSessionPayload,
        user_id: str,
    ) -> ReconcileResult:
        raw_credits = _metadata_str(session.metadata, "credits")
        try:
            credits = int(raw_credits) if raw_credits is not None else 0
        except ValueError:
            raise MalformedEventError(f"credits metadata is not an integer: {raw_credits!r}") from None
        if credits <= 0:
            raise MalformedEventError("credits metadata must be a positive integer")

        package = find_credit_package(_metadata_str(session.metadata, "price_id"))
        account, _ = await self._accounts.apply_credit_delta(
            db,
            user_id,
            credits,
            LedgerEntryType.ONE_TIME_PURCHASE,
            reference_type="CHECKOUT_SESSION",
            reference_id=session.id,
            event_id=event.id,
            description=f"Purchased {credits} credits",
        )

        effects = self._cache_effects(event.id, user_id)
        recipient = session.recipient_email or account.email
        if recipient:
            effects.append(self._email_effect(
                event.id,
                recipient,
                EmailTemplate.CREDIT_PURCHASE,
                {
                    "package_name": package.package_name if package else GENERIC_PACKAGE_NAME,
                    "price": package.display_price if package else "",
                    "credits": credits,
                    "new_balance": account.credits,
                },
            ))
        return ReconcileResult(
            event.id,
            event.type,
            EventOutcome.APPLIED,
            user_id=user_id,
            credits_granted=credits,
            balance_after=account.credits,
            side_effects=effects,
        )

    # ------------------------------------------------------------------
    # invoice.paid
    # ------------------------------------------------------------------

    async def _renew_subscription(
        self, db: AsyncSession, event: BillingEvent, invoice: InvoicePayload
    ) -> ReconcileResult:
        if invoice.billing_reason != RENEWAL_BILLING_REASON:
            # The first invoice of a subscription is covered by checkout.session.completed.
            logger.info("Invoice %s billing_reason=%s is not a renewal", invoice.id, invoice.billing_reason)
            return ReconcileResult(event.id, event.type, EventOutcome.IGNORED)
        subscription_id = invoice.subscription_id
        if subscription_id is None:
            logger.warning("Renewal invoice %s carries no subscription reference; skipped", invoice.id)
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED)

        subscription = await self._gateway.retrieve_subscription(subscription_id)
        user_id = await self._resolve_user_id(db, subscription)
        if user_id is None:
            logger.warning("No account for renewed subscription %s; skipped", subscription_id)
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED)

        try:
            plan = resolve_plan(subscription.price_id)
        except UnresolvedPlanError:
            # Renewals of unknown prices are dropped, never defaulted.
            logger.warning(
                "Renewal of subscription %s for user %s has unknown price %s; no credits granted",
                subscription_id,
                user_id,
                subscription.price_id,
            )
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED, user_id=user_id)

        account, _ = await self._accounts.apply_credit_delta(
            db,
            user_id,
            plan.credits,
            LedgerEntryType.RENEWAL_GRANT,
            reference_type="SUBSCRIPTION",
            reference_id=subscription_id,
            event_id=event.id,
            description=f"Subscription renewal credits ({plan.plan})",
        )
        return ReconcileResult(
            event.id,
            event.type,
            EventOutcome.APPLIED,
            user_id=user_id,
            credits_granted=plan.credits,
            balance_after=account.credits,
            side_effects=self._cache_effects(event.id, user_id),
        )

    # ------------------------------------------------------------------
    # customer.subscription.updated / customer.subscription.deleted
    # ------------------------------------------------------------------

    async def _sync_status(
        self, db: AsyncSession, event: BillingEvent, subscription: SubscriptionPayload
    ) -> ReconcileResult:
        user_id = await self._resolve_user_id(db, subscription)
        if user_id is None:
            logger.warning("No account for updated subscription %s; skipped", subscription.id)
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED)

        status = map_processor_status(subscription.status)
        account = await self._accounts.update_subscription_status(
            db, user_id, subscription.id, status, from_unix(subscription.period_end)
        )
        if account is None:
            logger.info(
                "Status sync for subscription %s left user %s untouched "
                "(account missing, canceled, or on another subscription)",
                subscription.id,
                user_id,
            )
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED, user_id=user_id)
        logger.info("Subscription status for user %s → %s", user_id, status.value)
        return ReconcileResult(
            event.id,
            event.type,
            EventOutcome.APPLIED,
            user_id=user_id,
            balance_after=account.credits,
            side_effects=self._cache_effects(event.id, user_id),
        )

    async def _cancel_subscription(
        self, db: AsyncSession, event: BillingEvent, subscription: SubscriptionPayload
    ) -> ReconcileResult:
        user_id = await self._resolve_user_id(db, subscription)
        if user_id is None:
            logger.warning("No account for deleted subscription %s; skipped", subscription.id)
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED)

        account = await self._accounts.cancel_subscription(db, user_id, subscription.id)
        if account is None:
            logger.info("Deletion of subscription %s left user %s untouched", subscription.id, user_id)
            return ReconcileResult(event.id, event.type, EventOutcome.SKIPPED, user_id=user_id)
        logger.info("Subscription %s canceled for user %s", subscription.id, user_id)
        return ReconcileResult(
            event.id,
            event.type,
            EventOutcome.APPLIED,
            user_id=user_id,
            balance_after=account.credits,
            side_effects=self._cache_effects(event.id, user_id),
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _resolve_user_id(
        self, db: AsyncSession, subscription: SubscriptionPayload
    ) -> str | None:
        """Subscription metadata first, then the account holding the subscription reference."""
        user_id = _metadata_str(subscription.metadata, "user_id")
        if user_id is not None:
            return user_id
        account: Account | None = await self._accounts.get_account_by_subscription_ref(
            db, subscription.id
        )
        return account.user_id if account else None

    def _cache_effects(self, event_id: str, user_id: str) -> list[SideEffect]:
        if self._cache is None:
            return []
        cache = self._cache
        return [SideEffect(
            name="cache:invalidate",
            action=lambda: cache.invalidate(user_id),
            event_id=event_id,
        )]

    def _email_effect(
        self,
        event_id: str,
        recipient: str,
        template: EmailTemplate,
        context: dict[str, Any],
    ) -> SideEffect:
        sender = self._sender
        return SideEffect(
            name=f"email:{template.value}",
            action=lambda: sender.send(recipient, template, context),
            event_id=event_id,
        )
