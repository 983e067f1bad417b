"""Pydantic schemas and cursor utilities for ent_account API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel

from src.ent_account.domain.models import Account, LedgerEntry

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EntitlementResponse(BaseModel):
    user_id: str
    credits: int
    plan: str | None
    subscription_status: str
    subscription_end_date: datetime | None
    has_subscription: bool

    @classmethod
    def from_domain(cls, account: Account) -> "EntitlementResponse":
        return cls(
            user_id=account.user_id,
            credits=account.credits,
            plan=account.plan,
            subscription_status=account.subscription_status,
            subscription_end_date=account.subscription_end_date,
            has_subscription=account.subscription_ref is not None,
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            balance_after=entry.balance_after,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
