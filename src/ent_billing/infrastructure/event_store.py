"""ProcessedEventStore — durable set of processor event ids already applied.

`claim` is a single INSERT ... ON CONFLICT DO NOTHING RETURNING, so two
concurrent deliveries of the same event id can never both win. The claim
lives in the caller's transaction: if the handler fails and the caller
rolls back, the claim disappears with it and the processor's retry can
apply the event.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_CLAIM_SQL = text("""
    INSERT INTO billing_events (event_id, event_type, outcome)
    VALUES (:event_id, :event_type, 'PROCESSING')
    ON CONFLICT (event_id) DO NOTHING
    RETURNING event_id
""")

_RECORD_OUTCOME_SQL = text("""
    UPDATE billing_events
    SET outcome = :outcome,
        user_id = :user_id
    WHERE event_id = :event_id
""")


class ProcessedEventStore:
    async def claim(self, db: AsyncSession, event_id: str, event_type: str) -> bool:
        result = await db.execute(
            _CLAIM_SQL, {"event_id": event_id, "event_type": event_type}
        )
        return result.fetchone() is not None

    async def record_outcome(
        self, db: AsyncSession, event_id: str, outcome: str, user_id: str | None
    ) -> None:
        await db.execute(
            _RECORD_OUTCOME_SQL,
            {
                "event_id": event_id,
                "outcome": str(getattr(outcome, "value", outcome)),
                "user_id": user_id,
            },
        )
