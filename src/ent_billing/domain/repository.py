"""Protocols for ent_billing collaborators.

Unit tests inject fakes that conform to these Protocols.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ent_billing.domain.models import SubscriptionPayload


class ProcessedEventStoreProtocol(Protocol):
    async def claim(self, db: AsyncSession, event_id: str, event_type: str) -> bool:
        """Record the event id; False when it was already recorded (duplicate delivery)."""
        ...

    async def record_outcome(
        self, db: AsyncSession, event_id: str, outcome: str, user_id: str | None
    ) -> None: ...


class ProcessorGatewayProtocol(Protocol):
    async def retrieve_subscription(self, subscription_id: str) -> SubscriptionPayload: ...

    async def find_or_create_customer(self, email: str | None, user_id: str) -> str: ...

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        mode: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        subscription_metadata: dict[str, str] | None,
    ) -> tuple[str, str]:
        """Return (session_id, hosted checkout url)."""
        ...

    async def set_cancel_at_period_end(
        self, subscription_id: str, cancel: bool
    ) -> SubscriptionPayload: ...
