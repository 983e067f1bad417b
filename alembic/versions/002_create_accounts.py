"""002: create accounts table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                      UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id                 VARCHAR(64)     NOT NULL,
            email                   VARCHAR(255),
            display_name            VARCHAR(255),
            credits                 BIGINT          NOT NULL DEFAULT 0,
            plan                    VARCHAR(64),
            subscription_status     VARCHAR(20)     NOT NULL DEFAULT 'NONE',
            subscription_ref        VARCHAR(255),
            subscription_end_date   TIMESTAMPTZ,
            version                 BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_user_id          UNIQUE (user_id),
            CONSTRAINT ck_accounts_credits_gte_0    CHECK (credits >= 0),
            CONSTRAINT ck_accounts_subscription_status CHECK (
                subscription_status IN ('NONE', 'ACTIVE', 'PAST_DUE', 'INACTIVE', 'CANCELED')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_accounts_subscription_ref
        ON accounts (subscription_ref)
        WHERE subscription_ref IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON TABLE accounts IS 'Credit accounts: credits change only through ledger_entries';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
