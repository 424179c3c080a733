"""In-memory implementation of NotifierPort for testing."""

from dataclasses import dataclass
from typing import Any

from port.notifier import NotificationTemplate


@dataclass(frozen=True)
class SentNotification:
    address: str
    template: NotificationTemplate
    data: dict[str, Any]


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[SentNotification] = []
        self.fail = fail

    async def send(self, address: str, template: NotificationTemplate, data: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("notification transport unavailable")
        self.sent.append(SentNotification(address=address, template=template, data=dict(data)))
