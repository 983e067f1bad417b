"""Notification Sender contract."""

from typing import Any, Protocol

from src.ent_common.enums import EmailTemplate


class NotificationSenderProtocol(Protocol):
    async def send(
        self, recipient: str, template: EmailTemplate, context: dict[str, Any]
    ) -> None: ...
