"""005: create referrals table

Revision ID: 005
Revises: 004
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE referrals (
            id                  BIGSERIAL       PRIMARY KEY,
            referrer_user_id    VARCHAR(64)     NOT NULL,
            referred_user_id    VARCHAR(64)     NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            reward_credits      BIGINT          NOT NULL DEFAULT 0,
            completed_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_referrals_referred_user   UNIQUE (referred_user_id),
            CONSTRAINT ck_referrals_not_self        CHECK (referrer_user_id <> referred_user_id),
            CONSTRAINT ck_referrals_status          CHECK (status IN ('PENDING', 'COMPLETED'))
        );
    """)
    op.execute("CREATE INDEX idx_referrals_referrer ON referrals (referrer_user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS referrals CASCADE;")
