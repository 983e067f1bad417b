"""ReferralRepository — raw SQL access to the referrals table.

Completion is one conditional UPDATE (`status = 'PENDING'` guard), so a
referral completes at most once even if several subscription events for
the referred user race.

Transaction ownership: the CALLER commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_common.enums import ReferralStatus
from src.ent_referral.domain.models import Referral

_COLUMNS = """
    id, referrer_user_id, referred_user_id, status,
    reward_credits, completed_at, created_at
"""

_COMPLETE_SQL = text(f"""
    UPDATE referrals
    SET status = :completed,
        reward_credits = :reward,
        completed_at = NOW()
    WHERE referred_user_id = :user_id AND status = :pending
    RETURNING {_COLUMNS}
""")


def _row_to_referral(row: object) -> Referral:
    return Referral(
        id=row.id,  # type: ignore[attr-defined]
        referrer_user_id=row.referrer_user_id,  # type: ignore[attr-defined]
        referred_user_id=row.referred_user_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        reward_credits=row.reward_credits,  # type: ignore[attr-defined]
        completed_at=row.completed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class ReferralRepository:
    async def complete_pending(
        self, db: AsyncSession, user_id: str, reward_credits: int
    ) -> Referral | None:
        """Mark the referred user's PENDING referral completed. None if there is none."""
        result = await db.execute(
            _COMPLETE_SQL,
            {
                "user_id": user_id,
                "reward": reward_credits,
                "completed": ReferralStatus.COMPLETED.value,
                "pending": ReferralStatus.PENDING.value,
            },
        )
        row = result.fetchone()
        return _row_to_referral(row) if row else None
