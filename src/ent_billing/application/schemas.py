"""Pydantic request/response schemas for ent_billing API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.ent_billing.domain.models import CreditPackage, PlanDefinition, ReconcileResult


class PlanItem(BaseModel):
    price_id: str
    plan: str
    display_name: str
    display_price: str
    credits: int
    interval: str

    @classmethod
    def from_domain(cls, plan: PlanDefinition) -> "PlanItem":
        return cls(
            price_id=plan.price_id,
            plan=plan.plan,
            display_name=plan.display_name,
            display_price=plan.display_price,
            credits=plan.credits,
            interval=plan.interval.value,
        )


class CreditPackageItem(BaseModel):
    price_id: str
    package_name: str
    display_price: str
    credits: int

    @classmethod
    def from_domain(cls, package: CreditPackage) -> "CreditPackageItem":
        return cls(
            price_id=package.price_id,
            package_name=package.package_name,
            display_price=package.display_price,
            credits=package.credits,
        )


class PlansResponse(BaseModel):
    plans: list[PlanItem]
    credit_packages: list[CreditPackageItem]


class CheckoutRequest(BaseModel):
    price_id: str = Field(..., min_length=1, max_length=255)


class CheckoutResponse(BaseModel):
    session_id: str
    url: str
    mode: str  # "subscription" | "payment"


class SubscriptionActionResponse(BaseModel):
    subscription_id: str
    cancel_at_period_end: bool
    current_period_end: datetime | None


class WebhookAck(BaseModel):
    """Processor-facing acknowledgement (not wrapped in ApiResponse)."""

    received: bool = True
    outcome: str

    @classmethod
    def from_result(cls, result: ReconcileResult) -> "WebhookAck":
        return cls(received=True, outcome=result.outcome.value)
