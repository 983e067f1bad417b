"""Unit tests for ProcessedEventStore using MagicMock AsyncSession."""

from unittest.mock import AsyncMock, MagicMock

from src.ent_billing.infrastructure.event_store import ProcessedEventStore
from src.ent_common.enums import EventOutcome


def _db(fetchone_value: object) -> AsyncMock:
    db = AsyncMock()
    result = MagicMock()
    result.fetchone.return_value = fetchone_value
    db.execute.return_value = result
    return db


class TestClaim:
    async def test_first_claim_wins(self) -> None:
        db = _db(MagicMock(event_id="evt_1"))

        assert await ProcessedEventStore().claim(db, "evt_1", "invoice.paid") is True

        sql = str(db.execute.await_args.args[0])
        assert "ON CONFLICT (event_id) DO NOTHING" in sql
        assert db.execute.await_args.args[1] == {"event_id": "evt_1", "event_type": "invoice.paid"}

    async def test_conflict_means_already_processed(self) -> None:
        assert await ProcessedEventStore().claim(_db(None), "evt_1", "invoice.paid") is False


class TestRecordOutcome:
    async def test_stores_enum_value(self) -> None:
        db = _db(None)

        await ProcessedEventStore().record_outcome(db, "evt_1", EventOutcome.SKIPPED, "user-1")

        params = db.execute.await_args.args[1]
        assert params == {"event_id": "evt_1", "outcome": "SKIPPED", "user_id": "user-1"}
