"""Repository Protocol — the Account Store contract.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Credits are never written as an absolute value: `apply_credit_delta` is the
only way to change them and it must be an atomic server-side increment.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def get_account_by_subscription_ref(
        self, db: AsyncSession, subscription_ref: str
    ) -> Account | None: ...

    async def apply_credit_delta(
        self,
        db: AsyncSession,
        user_id: str,
        delta: int,
        entry_type: str,
        reference_type: str | None,
        reference_id: str | None,
        event_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def activate_subscription(
        self, db: AsyncSession, user_id: str, plan: str, subscription_ref: str
    ) -> Account: ...

    async def update_subscription_status(
        self,
        db: AsyncSession,
        user_id: str,
        subscription_ref: str,
        status: str,
        end_date: datetime | None,
    ) -> Account | None: ...

    async def cancel_subscription(
        self, db: AsyncSession, user_id: str, subscription_ref: str
    ) -> Account | None: ...

    async def set_subscription_state(
        self,
        db: AsyncSession,
        user_id: str,
        plan: str | None,
        status: str,
        end_date: datetime | None,
    ) -> Account: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
