"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

All credit mutations use atomic PostgreSQL `credits = credits + :delta`
UPDATE ... RETURNING, so concurrent grants to the same account never lose an
update. A result of 0 rows means the account does not exist or a guard
(canceled status, mismatched subscription reference) rejected the change.

Transaction ownership: the CALLER (application service / reconciler) commits
or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_account.domain.models import Account, LedgerEntry
from src.ent_common.enums import SubscriptionStatus
from src.ent_common.errors import AccountNotFoundError, InternalError

_ACCOUNT_COLUMNS = """
    id, user_id, email, display_name, credits, plan, subscription_status,
    subscription_ref, subscription_end_date, version, created_at, updated_at
"""

_LEDGER_COLUMNS = """
    id, user_id, entry_type, amount, balance_after,
    reference_type, reference_id, event_id, description, created_at
"""

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_GET_ACCOUNT_BY_SUBSCRIPTION_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE subscription_ref = :subscription_ref
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_LEDGER_COLUMNS}
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (:cursor_id IS NULL OR id < :cursor_id)
      AND (:entry_type IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: mutations
# ---------------------------------------------------------------------------

_APPLY_DELTA_SQL = text(f"""
    UPDATE accounts
    SET credits = credits + :delta,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND credits + :delta >= 0
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, event_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :event_id, :description)
    RETURNING {_LEDGER_COLUMNS}
""")

_ACTIVATE_SQL = text(f"""
    UPDATE accounts
    SET subscription_status = :status,
        plan = :plan,
        subscription_ref = :subscription_ref,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# CANCELED is terminal for status sync, and a sync for a subscription other
# than the one on record must not touch the account.
_UPDATE_STATUS_SQL = text(f"""
    UPDATE accounts
    SET subscription_status = :status,
        subscription_end_date = :end_date,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
      AND subscription_status <> :canceled
      AND (subscription_ref IS NULL OR subscription_ref = :subscription_ref)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CANCEL_SQL = text(f"""
    UPDATE accounts
    SET subscription_status = :status,
        subscription_ref = NULL,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
      AND (subscription_ref IS NULL OR subscription_ref = :subscription_ref)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_STATE_SQL = text(f"""
    UPDATE accounts
    SET plan = :plan,
        subscription_status = :status,
        subscription_end_date = :end_date,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        email=row.email,  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
        credits=row.credits,  # type: ignore[attr-defined]
        plan=row.plan,  # type: ignore[attr-defined]
        subscription_status=row.subscription_status,  # type: ignore[attr-defined]
        subscription_ref=row.subscription_ref,  # type: ignore[attr-defined]
        subscription_end_date=row.subscription_end_date,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        event_id=row.event_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """All credit mutations are single atomic SQL statements."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_by_subscription_ref(
        self, db: AsyncSession, subscription_ref: str
    ) -> Account | None:
        result = await db.execute(
            _GET_ACCOUNT_BY_SUBSCRIPTION_SQL, {"subscription_ref": subscription_ref}
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

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
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_APPLY_DELTA_SQL, {"user_id": user_id, "delta": delta})
        row = result.fetchone()
        if row is None:
            if await self.get_account_by_user_id(db, user_id) is None:
                raise AccountNotFoundError(user_id)
            raise InternalError(f"Credit delta {delta} would make balance negative for {user_id}")
        account = _row_to_account(row)
        ledger_result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": str(getattr(entry_type, "value", entry_type)),
                "amount": delta,
                "balance_after": account.credits,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "event_id": event_id,
                "description": description,
            },
        )
        ledger_row = ledger_result.fetchone()
        if ledger_row is None:
            raise InternalError("Ledger insert returned no rows")
        return account, _row_to_ledger(ledger_row)

    async def activate_subscription(
        self, db: AsyncSession, user_id: str, plan: str, subscription_ref: str
    ) -> Account:
        result = await db.execute(
            _ACTIVATE_SQL,
            {
                "user_id": user_id,
                "status": SubscriptionStatus.ACTIVE.value,
                "plan": plan,
                "subscription_ref": subscription_ref,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)
        return _row_to_account(row)

    async def update_subscription_status(
        self,
        db: AsyncSession,
        user_id: str,
        subscription_ref: str,
        status: str,
        end_date: datetime | None,
    ) -> Account | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "user_id": user_id,
                "subscription_ref": subscription_ref,
                "status": str(getattr(status, "value", status)),
                "end_date": end_date,
                "canceled": SubscriptionStatus.CANCELED.value,
            },
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def cancel_subscription(
        self, db: AsyncSession, user_id: str, subscription_ref: str
    ) -> Account | None:
        result = await db.execute(
            _CANCEL_SQL,
            {
                "user_id": user_id,
                "subscription_ref": subscription_ref,
                "status": SubscriptionStatus.CANCELED.value,
            },
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def set_subscription_state(
        self,
        db: AsyncSession,
        user_id: str,
        plan: str | None,
        status: str,
        end_date: datetime | None,
    ) -> Account:
        result = await db.execute(
            _SET_STATE_SQL,
            {
                "user_id": user_id,
                "plan": plan,
                "status": str(getattr(status, "value", status)),
                "end_date": end_date,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)
        return _row_to_account(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        rows = result.fetchall()
        return [_row_to_ledger(row) for row in rows]
