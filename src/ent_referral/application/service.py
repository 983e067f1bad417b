"""ReferralService — reward the referrer when a referred user subscribes.

Runs as a best-effort side effect after the activation transaction has
committed, in its own session and transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ent_account.domain.repository import AccountRepositoryProtocol
from src.ent_common.enums import EmailTemplate, LedgerEntryType
from src.ent_notify.domain.repository import NotificationSenderProtocol
from src.ent_referral.infrastructure.persistence import ReferralRepository

logger = logging.getLogger(__name__)


class ReferralService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        account_repo: AccountRepositoryProtocol,
        sender: NotificationSenderProtocol,
        reward_credits: int,
        referral_repo: ReferralRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._accounts = account_repo
        self._sender = sender
        self._reward = reward_credits
        self._referrals = referral_repo or ReferralRepository()

    async def complete(self, user_id: str) -> bool:
        """Complete `user_id`'s pending referral. Returns False when there was none."""
        async with self._session_factory() as db:
            try:
                referral = await self._referrals.complete_pending(db, user_id, self._reward)
                if referral is None:
                    await db.rollback()
                    logger.info("No pending referral for user %s", user_id)
                    return False
                account, _ = await self._accounts.apply_credit_delta(
                    db,
                    referral.referrer_user_id,
                    self._reward,
                    LedgerEntryType.REFERRAL_BONUS,
                    reference_type="REFERRAL",
                    reference_id=str(referral.id),
                    event_id=None,
                    description=f"Referral bonus: {user_id} subscribed",
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Referral %s completed: referrer %s +%d credits",
            referral.id,
            referral.referrer_user_id,
            self._reward,
        )
        if account.email:
            await self._sender.send(
                account.email,
                EmailTemplate.REFERRAL_REWARD,
                {"credits": self._reward, "new_balance": account.credits},
            )
        return True
