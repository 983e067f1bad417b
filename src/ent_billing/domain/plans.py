"""Static plan and credit-package catalog keyed by processor price id.

Read-only reference data. Legacy price ids stay in the table so that
renewals of subscriptions created under old prices keep granting credits.
"""

from src.ent_billing.domain.models import CreditPackage, PlanDefinition
from src.ent_common.enums import BillingInterval
from src.ent_common.errors import UnresolvedPlanError

_MONTH = BillingInterval.MONTH
_YEAR = BillingInterval.YEAR

SUBSCRIPTION_PLANS: dict[str, PlanDefinition] = {
    plan.price_id: plan
    for plan in (
        PlanDefinition("price_1SsTCRCpOaBygRMzaYvMeCVZ", 500, _MONTH, "premium-monthly", "Premium", "$9.99/month"),
        PlanDefinition("price_1SsTCdCpOaBygRMzezP7vu5t", 5000, _YEAR, "premium-yearly", "Premium", "$99/year"),
        PlanDefinition("price_1SsTD3CpOaBygRMz4Zidlmny", 1000, _MONTH, "premium-plus-monthly", "Premium Plus", "$19.99/month"),
        PlanDefinition("price_1SsTDGCpOaBygRMzr08YAnjw", 7500, _YEAR, "premium-plus-yearly", "Premium Plus", "$149/year"),
    )
}

# Still renewed and synced, no longer offered at checkout.
LEGACY_PLANS: dict[str, PlanDefinition] = {
    plan.price_id: plan
    for plan in (
        PlanDefinition("price_1SWxx7CpOaBygRMzCWkRsnpS", 500, _MONTH, "premium-monthly", "Premium", "$9.99/month"),
        PlanDefinition("price_1SWxy1CpOaBygRMz22A4nG6X", 1000, _MONTH, "premium-plus-monthly", "Premium Plus", "$19.99/month"),
        PlanDefinition("price_1SWxznCpOaBygRMznQrerM4R", 5000, _YEAR, "premium-yearly", "Premium", "$99/year"),
        PlanDefinition("price_1Sr2N9CpOaBygRMzWj0APhqV", 500, _MONTH, "premium-monthly", "Premium", "$9.99/month"),
    )
}

CREDIT_PACKAGES: dict[str, CreditPackage] = {
    pkg.price_id: pkg
    for pkg in (
        CreditPackage("price_1SskytCpOaBygRMzKn3QRWI8", 350, "Starter", "$5.00"),
        CreditPackage("price_1Sskz8CpOaBygRMzhfTitmx9", 700, "Plus", "$10.00"),
        CreditPackage("price_1SskzeCpOaBygRMzxFMSYoPK", 1400, "Pro", "$20.00"),
    )
}

# Used in notifications when a purchase carries no known price id.
GENERIC_PACKAGE_NAME = "Credit"


def resolve_plan(price_id: str | None) -> PlanDefinition:
    """Return the plan for a price id (current or legacy).

    Raises:
        UnresolvedPlanError: price id is None or not in the catalog.
    """
    if price_id:
        plan = SUBSCRIPTION_PLANS.get(price_id) or LEGACY_PLANS.get(price_id)
        if plan is not None:
            return plan
    raise UnresolvedPlanError(price_id)


def find_credit_package(price_id: str | None) -> CreditPackage | None:
    if not price_id:
        return None
    return CREDIT_PACKAGES.get(price_id)


def offered_plans() -> list[PlanDefinition]:
    """Plans available for new checkouts (legacy prices excluded)."""
    return list(SUBSCRIPTION_PLANS.values())


def offered_packages() -> list[CreditPackage]:
    return list(CREDIT_PACKAGES.values())
