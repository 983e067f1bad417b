"""004: create billing_events table (processed webhook event ids)

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE billing_events (
            event_id        VARCHAR(255)    PRIMARY KEY,
            event_type      VARCHAR(100)    NOT NULL,
            user_id         VARCHAR(64),
            outcome         VARCHAR(20)     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_billing_events_outcome CHECK (
                outcome IN ('PROCESSING', 'APPLIED', 'SKIPPED', 'IGNORED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_billing_events_user ON billing_events (user_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS billing_events CASCADE;")
