"""AccountApplicationService — read side of the Account Store.

Both operations are read-only; credit and subscription mutations belong to
the billing reconciler.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_account.application.schemas import (
    EntitlementResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.ent_account.domain.repository import AccountRepositoryProtocol
from src.ent_account.infrastructure.cache import EntitlementCache
from src.ent_account.infrastructure.persistence import AccountRepository
from src.ent_common.errors import AccountNotFoundError


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        cache: EntitlementCache | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._cache = cache

    async def get_entitlement(self, db: AsyncSession, user_id: str) -> EntitlementResponse:
        if self._cache is not None:
            cached = await self._cache.get(user_id)
            if cached is not None:
                return EntitlementResponse.model_validate(cached)

        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        data = EntitlementResponse.from_domain(account)
        if self._cache is not None:
            await self._cache.set(user_id, data.model_dump(mode="json"))
        return data

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        items = [LedgerEntryItem.from_domain(e) for e in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
