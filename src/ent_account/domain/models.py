"""Domain models for ent_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    credits: int                     # non-negative, changes only through ledger entries
    subscription_status: str         # SubscriptionStatus value
    version: int
    email: str | None = None
    display_name: str | None = None
    plan: str | None = None
    subscription_ref: str | None = None
    subscription_end_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # signed credit delta
    balance_after: int               # credits snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    event_id: str | None = None      # processor event id, unique when present
    description: str | None = None
    created_at: datetime | None = None
