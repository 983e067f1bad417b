"""Unit tests for BillingApplicationService (checkout + subscription management)."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.ent_billing.application.service import BillingApplicationService
from src.ent_billing.domain.config import BillingConfig
from src.ent_common.enums import SubscriptionStatus
from src.ent_common.errors import (
    AccountNotFoundError,
    NoSubscriptionError,
    ProcessorError,
    UnresolvedPlanError,
)
from tests.unit.fakes import (
    LEGACY_MONTHLY,
    PACKAGE_PLUS,
    PLAN_MONTHLY,
    PLAN_PLUS_MONTHLY,
    FakeAccountRepository,
    FakeGateway,
    FakeSession,
)


@pytest.fixture
def accounts() -> FakeAccountRepository:
    repo = FakeAccountRepository()
    repo.add("user-1", credits=200, email="user@example.com", status=SubscriptionStatus.ACTIVE,
             plan="premium-monthly", subscription_ref="sub_1")
    repo.add("user-2", credits=0)
    return repo


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def cache() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(accounts, gateway, cache) -> BillingApplicationService:
    return BillingApplicationService(
        BillingConfig(app_base_url="https://app.example.com/"),
        account_repo=accounts,
        gateway=gateway,
        cache=cache,
    )


class TestListPlans:
    def test_lists_current_plans_and_packages(self, service) -> None:
        result = service.list_plans()

        assert len(result.plans) == 4
        assert LEGACY_MONTHLY not in {p.price_id for p in result.plans}
        assert [p.credits for p in result.credit_packages] == [350, 700, 1400]


class TestCreateCheckout:
    async def test_subscription_checkout_metadata(self, service, gateway) -> None:
        result = await service.create_checkout(FakeSession(), "user-1", PLAN_PLUS_MONTHLY)

        assert result.mode == "subscription"
        assert result.session_id == "cs_test_123"
        call = gateway.checkout_calls[0]
        assert call["customer_id"] == "cus_user-1"
        assert call["mode"] == "subscription"
        assert call["metadata"] == {
            "user_id": "user-1",
            "type": "subscription",
            "credits": "0",
            "price_id": PLAN_PLUS_MONTHLY,
        }
        assert call["subscription_metadata"] == {"user_id": "user-1"}
        assert call["success_url"] == "https://app.example.com/pricing?success=true&type=subscription"
        assert call["cancel_url"] == "https://app.example.com/pricing?canceled=true"

    async def test_credit_package_checkout_metadata(self, service, gateway) -> None:
        result = await service.create_checkout(FakeSession(), "user-2", PACKAGE_PLUS)

        assert result.mode == "payment"
        call = gateway.checkout_calls[0]
        assert call["metadata"]["type"] == "credits"
        assert call["metadata"]["credits"] == "700"
        assert call["subscription_metadata"] is None

    async def test_legacy_price_not_offered(self, service) -> None:
        with pytest.raises(UnresolvedPlanError):
            await service.create_checkout(FakeSession(), "user-1", LEGACY_MONTHLY)

    async def test_unknown_account(self, service) -> None:
        with pytest.raises(AccountNotFoundError):
            await service.create_checkout(FakeSession(), "ghost", PLAN_MONTHLY)


class TestSyncSubscription:
    async def test_stores_processor_state(self, service, accounts, gateway, cache) -> None:
        gateway.add_subscription("sub_1", PLAN_PLUS_MONTHLY, status="past_due", current_period_end=1_900_000_000)
        db = FakeSession()

        result = await service.sync_subscription(db, "user-1")

        assert result.subscription_status == "PAST_DUE"
        assert result.plan == "premium-plus-monthly"
        assert result.credits == 200
        assert int(result.subscription_end_date.timestamp()) == 1_900_000_000
        assert db.commits == 1
        cache.invalidate.assert_awaited_once_with("user-1")

    async def test_unknown_price_keeps_plan(self, service, gateway) -> None:
        gateway.add_subscription("sub_1", "price_retired", status="active")
        result = await service.sync_subscription(FakeSession(), "user-1")
        assert result.plan == "premium-monthly"

    async def test_no_subscription(self, service) -> None:
        with pytest.raises(NoSubscriptionError):
            await service.sync_subscription(FakeSession(), "user-2")

    async def test_processor_failure_propagates(self, service) -> None:
        with pytest.raises(ProcessorError):
            await service.sync_subscription(FakeSession(), "user-1")

    async def test_cache_failure_does_not_fail_sync(self, service, gateway, cache) -> None:
        gateway.add_subscription("sub_1", PLAN_MONTHLY)
        cache.invalidate.side_effect = RedisConnectionError("down")

        result = await service.sync_subscription(FakeSession(), "user-1")

        assert result.subscription_status == "ACTIVE"


class TestCancelReactivate:
    async def test_cancel_at_period_end(self, service, gateway) -> None:
        gateway.add_subscription("sub_1", PLAN_MONTHLY)

        result = await service.cancel_subscription(FakeSession(), "user-1")

        assert gateway.cancel_calls == [("sub_1", True)]
        assert result.cancel_at_period_end is True
        assert result.subscription_id == "sub_1"

    async def test_reactivate(self, service, gateway, accounts) -> None:
        gateway.add_subscription("sub_1", PLAN_MONTHLY)

        result = await service.reactivate_subscription(FakeSession(), "user-1")

        assert gateway.cancel_calls == [("sub_1", False)]
        assert result.cancel_at_period_end is False
        assert accounts.accounts["user-1"].subscription_status == "ACTIVE"

    async def test_cancel_without_subscription(self, service) -> None:
        with pytest.raises(NoSubscriptionError):
            await service.cancel_subscription(FakeSession(), "user-2")
