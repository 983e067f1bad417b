"""Process-wide billing components, built once from settings.

Routers receive them through FastAPI dependencies so tests can swap any of
them with `app.dependency_overrides`.
"""

from config.settings import settings
from src.ent_account.infrastructure.cache import EntitlementCache
from src.ent_account.infrastructure.persistence import AccountRepository
from src.ent_billing.application.reconciler import EntitlementReconciler
from src.ent_billing.application.service import BillingApplicationService
from src.ent_billing.domain.config import BillingConfig, build_billing_config
from src.ent_billing.domain.verifier import EventVerifier
from src.ent_billing.infrastructure.event_store import ProcessedEventStore
from src.ent_billing.infrastructure.stripe_gateway import StripeGateway
from src.ent_common.database import async_session_factory
from src.ent_common.redis_client import get_redis
from src.ent_notify.application.dispatcher import BestEffortDispatcher
from src.ent_notify.infrastructure.resend_sender import ResendEmailSender
from src.ent_referral.application.service import ReferralService

billing_config: BillingConfig = build_billing_config(settings)

_accounts = AccountRepository()
_gateway = StripeGateway(billing_config)
_sender = ResendEmailSender(billing_config)
_cache = EntitlementCache(get_redis, ttl_seconds=billing_config.entitlement_cache_ttl_seconds)

_verifier = EventVerifier(
    billing_config.webhook_secret,
    tolerance_seconds=billing_config.webhook_tolerance_seconds,
)
_reconciler = EntitlementReconciler(
    billing_config,
    account_repo=_accounts,
    event_store=ProcessedEventStore(),
    gateway=_gateway,
    sender=_sender,
    cache=_cache,
    referrals=ReferralService(
        async_session_factory,
        account_repo=_accounts,
        sender=_sender,
        reward_credits=billing_config.referral_reward_credits,
    ),
)
_billing_service = BillingApplicationService(
    billing_config, account_repo=_accounts, gateway=_gateway, cache=_cache
)
_dispatcher = BestEffortDispatcher()


def get_verifier() -> EventVerifier:
    return _verifier


def get_reconciler() -> EntitlementReconciler:
    return _reconciler


def get_billing_service() -> BillingApplicationService:
    return _billing_service


def get_dispatcher() -> BestEffortDispatcher:
    return _dispatcher
