"""Domain models for ent_referral — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Referral:
    id: int
    referrer_user_id: str
    referred_user_id: str           # unique: a user can be referred once
    status: str                     # ReferralStatus value
    reward_credits: int = 0         # 0 until completed
    completed_at: datetime | None = None
    created_at: datetime | None = None
