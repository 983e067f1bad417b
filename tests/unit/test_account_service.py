"""Unit tests for AccountApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ent_account.application.schemas import EntitlementResponse, cursor_decode, cursor_encode
from src.ent_account.application.service import AccountApplicationService
from src.ent_account.domain.models import Account, LedgerEntry
from src.ent_common.errors import AccountNotFoundError


def _make_account(credits: int = 600, subscription_ref: str | None = "sub_1") -> Account:
    return Account(
        id="uuid-1",
        user_id="user-1",
        credits=credits,
        subscription_status="ACTIVE",
        version=1,
        plan="premium-monthly",
        subscription_ref=subscription_ref,
        subscription_end_date=datetime(2027, 1, 1, tzinfo=UTC),
    )


def _make_ledger_entry(entry_id: int, amount: int = 500) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        user_id="user-1",
        entry_type="RENEWAL_GRANT",
        amount=amount,
        balance_after=1000,
        created_at=datetime.now(UTC),
    )


class TestGetEntitlement:
    async def test_returns_snapshot(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account_by_user_id.return_value = _make_account()
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.get_entitlement(MagicMock(), "user-1")

        assert isinstance(result, EntitlementResponse)
        assert result.credits == 600
        assert result.plan == "premium-monthly"
        assert result.has_subscription is True

    async def test_missing_account_raises(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account_by_user_id.return_value = None
        svc = AccountApplicationService(repo=mock_repo)

        with pytest.raises(AccountNotFoundError):
            await svc.get_entitlement(MagicMock(), "ghost")

    async def test_cache_hit_skips_db(self) -> None:
        mock_repo = AsyncMock()
        cache = AsyncMock()
        cache.get.return_value = EntitlementResponse.from_domain(_make_account(42)).model_dump(mode="json")
        svc = AccountApplicationService(repo=mock_repo, cache=cache)

        result = await svc.get_entitlement(MagicMock(), "user-1")

        assert result.credits == 42
        mock_repo.get_account_by_user_id.assert_not_awaited()

    async def test_cache_miss_populates(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account_by_user_id.return_value = _make_account(subscription_ref=None)
        cache = AsyncMock()
        cache.get.return_value = None
        svc = AccountApplicationService(repo=mock_repo, cache=cache)

        result = await svc.get_entitlement(MagicMock(), "user-1")

        assert result.has_subscription is False
        user_id, snapshot = cache.set.await_args.args
        assert user_id == "user-1"
        assert snapshot["credits"] == 600
        assert snapshot["subscription_end_date"].startswith("2027-01-01")


class TestListLedger:
    async def test_has_more_and_cursor(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [_make_ledger_entry(i) for i in (5, 4, 3)]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(MagicMock(), "user-1", None, 2, None)

        assert [item.id for item in result.items] == [5, 4]
        assert result.has_more is True
        assert cursor_decode(result.next_cursor) == 4
        mock_repo.list_ledger_entries.assert_awaited_once()
        assert mock_repo.list_ledger_entries.await_args.args[3] == 3  # limit + 1

    async def test_last_page(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [_make_ledger_entry(1)]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(MagicMock(), "user-1", cursor_encode(2), 20, "RENEWAL_GRANT")

        assert result.has_more is False
        assert result.next_cursor is None
        args = mock_repo.list_ledger_entries.await_args.args
        assert args[2] == 2
        assert args[4] == "RENEWAL_GRANT"


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(123)) == 123

    def test_invalid_cursor_is_none(self) -> None:
        assert cursor_decode("not-base64!!") is None
        assert cursor_decode(None) is None
