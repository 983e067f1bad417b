"""BillingConfig — explicit configuration for the billing components.

Built once from `Settings` at process start and passed by reference into
the verifier, processor gateway, reconciler, and notification sender.
Handler code never reads environment variables or `settings` directly.
"""

from dataclasses import dataclass

from config.settings import Settings


@dataclass(frozen=True)
class BillingConfig:
    stripe_secret_key: str = ""
    webhook_secret: str = ""                  # empty → events are parsed UNVERIFIED
    webhook_tolerance_seconds: int = 300
    default_plan_price_id: str = "price_1SsTCRCpOaBygRMzaYvMeCVZ"
    resend_api_key: str = ""                  # empty → transactional emails disabled
    email_from: str = "Timeless <noreply@timelessapp.ai>"
    app_base_url: str = "http://localhost:5173"
    referral_reward_credits: int = 50
    entitlement_cache_ttl_seconds: int = 5

    @property
    def processor_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def verification_enabled(self) -> bool:
        return bool(self.webhook_secret)

    @property
    def emails_enabled(self) -> bool:
        return bool(self.resend_api_key)


def build_billing_config(settings: Settings) -> BillingConfig:
    return BillingConfig(
        stripe_secret_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        webhook_tolerance_seconds=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        default_plan_price_id=settings.DEFAULT_PLAN_PRICE_ID,
        resend_api_key=settings.RESEND_API_KEY,
        email_from=settings.EMAIL_FROM,
        app_base_url=settings.APP_BASE_URL,
        referral_reward_credits=settings.REFERRAL_REWARD_CREDITS,
        entitlement_cache_ttl_seconds=settings.ENTITLEMENT_CACHE_TTL_SECONDS,
    )
