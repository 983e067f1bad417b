"""Domain models for ent_billing.

Plan/package definitions are frozen dataclasses (static reference data).
Inbound processor events are pydantic models so that unknown fields in the
processor payload are ignored instead of rejected.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.ent_common.enums import BillingInterval, EventOutcome, SubscriptionStatus


@dataclass(frozen=True)
class PlanDefinition:
    price_id: str
    credits: int                     # granted on activation and on every renewal
    interval: BillingInterval
    plan: str                        # internal plan name stored on the account
    display_name: str
    display_price: str


@dataclass(frozen=True)
class CreditPackage:
    price_id: str
    credits: int
    package_name: str
    display_price: str


# ---------------------------------------------------------------------------
# Inbound event (processor payload)
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class EventData(_Payload):
    object: dict[str, Any]


class BillingEvent(_Payload):
    id: str
    type: str
    data: EventData
    created: int | None = None
    livemode: bool = False

    @property
    def payload(self) -> dict[str, Any]:
        return self.data.object


class CustomerDetails(_Payload):
    email: str | None = None


class CheckoutSessionPayload(_Payload):
    id: str
    subscription: str | None = None
    customer: str | None = None
    customer_email: str | None = None
    customer_details: CustomerDetails | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def recipient_email(self) -> str | None:
        if self.customer_email:
            return self.customer_email
        if self.customer_details is not None:
            return self.customer_details.email
        return None


class _SubscriptionDetails(_Payload):
    subscription: str | None = None


class _InvoiceParent(_Payload):
    subscription_details: _SubscriptionDetails | None = None


class InvoicePayload(_Payload):
    id: str
    billing_reason: str | None = None
    subscription: str | None = None
    parent: _InvoiceParent | None = None

    @property
    def subscription_id(self) -> str | None:
        """Older API versions inline `subscription`; newer ones nest it under `parent`."""
        if self.subscription:
            return self.subscription
        if self.parent is not None and self.parent.subscription_details is not None:
            return self.parent.subscription_details.subscription
        return None


class _Price(_Payload):
    id: str


class _SubscriptionItem(_Payload):
    price: _Price | None = None
    current_period_end: int | None = None


class _SubscriptionItems(_Payload):
    data: list[_SubscriptionItem] = Field(default_factory=list)


class SubscriptionPayload(_Payload):
    id: str
    status: str | None = None
    customer: str | None = None
    current_period_end: int | None = None
    cancel_at_period_end: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    items: _SubscriptionItems = Field(default_factory=_SubscriptionItems)

    @property
    def price_id(self) -> str | None:
        if not self.items.data or self.items.data[0].price is None:
            return None
        return self.items.data[0].price.id

    @property
    def period_end(self) -> int | None:
        """Top-level on older API versions, per item on newer ones."""
        if self.current_period_end is not None:
            return self.current_period_end
        if self.items.data:
            return self.items.data[0].current_period_end
        return None


# ---------------------------------------------------------------------------
# Reconciliation result
# ---------------------------------------------------------------------------


@dataclass
class ReconcileResult:
    event_id: str
    event_type: str
    outcome: EventOutcome
    user_id: str | None = None
    credits_granted: int = 0
    balance_after: int | None = None
    side_effects: list[Any] = field(default_factory=list)  # list[SideEffect]


def map_processor_status(status: str | None) -> SubscriptionStatus:
    """Processor subscription status → account status (active, past_due, else inactive)."""
    if status == "active":
        return SubscriptionStatus.ACTIVE
    if status == "past_due":
        return SubscriptionStatus.PAST_DUE
    return SubscriptionStatus.INACTIVE
