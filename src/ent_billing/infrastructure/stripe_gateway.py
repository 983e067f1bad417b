"""StripeGateway — read-back and checkout calls against the Stripe API.

Every call passes the configured secret key explicitly instead of mutating
the SDK's global `stripe.api_key`, and uses the SDK's async (httpx-backed)
request methods. Any Stripe failure is wrapped into `ProcessorError`.
"""

import logging
from typing import Any

import stripe

from src.ent_billing.domain.config import BillingConfig
from src.ent_billing.domain.models import SubscriptionPayload
from src.ent_common.errors import BillingNotConfiguredError, ProcessorError

logger = logging.getLogger(__name__)


def _to_dict(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    def __init__(self, config: BillingConfig) -> None:
        self._api_key = config.stripe_secret_key

    def _require_key(self) -> str:
        if not self._api_key:
            raise BillingNotConfiguredError()
        return self._api_key

    async def retrieve_subscription(self, subscription_id: str) -> SubscriptionPayload:
        api_key = self._require_key()
        try:
            subscription = await stripe.Subscription.retrieve_async(
                subscription_id, api_key=api_key
            )
        except stripe.StripeError as exc:
            logger.warning("Failed to retrieve Stripe subscription %s: %s", subscription_id, exc)
            raise ProcessorError(str(exc)) from exc
        return SubscriptionPayload.model_validate(_to_dict(subscription))

    async def find_or_create_customer(self, email: str | None, user_id: str) -> str:
        api_key = self._require_key()
        try:
            if email:
                existing = await stripe.Customer.list_async(email=email, limit=1, api_key=api_key)
                if existing.data:
                    return existing.data[0].id
            customer = await stripe.Customer.create_async(
                email=email,
                metadata={"user_id": user_id},
                api_key=api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe customer lookup/creation failed for %s: %s", user_id, exc)
            raise ProcessorError(str(exc)) from exc
        return customer.id

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        mode: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        subscription_metadata: dict[str, str] | None,
    ) -> tuple[str, str]:
        api_key = self._require_key()
        options: dict[str, Any] = {
            "customer": customer_id,
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": mode,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if subscription_metadata:
            options["subscription_data"] = {"metadata": subscription_metadata}
        try:
            session = await stripe.checkout.Session.create_async(api_key=api_key, **options)
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout session creation failed: %s", exc)
            raise ProcessorError(str(exc)) from exc
        return session.id, session.url

    async def set_cancel_at_period_end(
        self, subscription_id: str, cancel: bool
    ) -> SubscriptionPayload:
        api_key = self._require_key()
        try:
            subscription = await stripe.Subscription.modify_async(
                subscription_id, cancel_at_period_end=cancel, api_key=api_key
            )
        except stripe.StripeError as exc:
            logger.warning("Failed to modify Stripe subscription %s: %s", subscription_id, exc)
            raise ProcessorError(str(exc)) from exc
        return SubscriptionPayload.model_validate(_to_dict(subscription))
