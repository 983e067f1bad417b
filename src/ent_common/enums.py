"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class SubscriptionStatus(str, Enum):
    NONE = "NONE"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    INACTIVE = "INACTIVE"
    CANCELED = "CANCELED"  # terminal for status sync; only a new checkout reactivates


class LedgerEntryType(str, Enum):
    SUBSCRIPTION_GRANT = "SUBSCRIPTION_GRANT"
    RENEWAL_GRANT = "RENEWAL_GRANT"
    ONE_TIME_PURCHASE = "ONE_TIME_PURCHASE"
    REFERRAL_BONUS = "REFERRAL_BONUS"


class BillingInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"


class BillingEventType(str, Enum):
    """Processor event types the reconciler acts on. Anything else is acknowledged and ignored."""
    CHECKOUT_COMPLETED = "checkout.session.completed"
    INVOICE_PAID = "invoice.paid"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class CheckoutKind(str, Enum):
    """Value of the `type` metadata tag stamped on checkout sessions."""
    SUBSCRIPTION = "subscription"
    CREDITS = "credits"


class EventOutcome(str, Enum):
    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    IGNORED = "IGNORED"
    DUPLICATE = "DUPLICATE"


class ReferralStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class EmailTemplate(str, Enum):
    SUBSCRIPTION_WELCOME = "subscription-welcome"
    CREDIT_PURCHASE = "credit-purchase"
    REFERRAL_REWARD = "referral-reward"
