"""Notification port: outbound interface for user-facing messages."""

from enum import Enum
from typing import Any, Protocol


class NotificationTemplate(str, Enum):
    PASSWORD_RESET = 'password_reset'
    PASSWORD_RESET_CONFIRMATION = 'password_reset_confirmation'


class NotifierPort(Protocol):
    async def send(self, address: str, template: NotificationTemplate, data: dict[str, Any]) -> None:
        """Deliver a templated message. Raises on delivery failure."""
        ...
