"""User-visible notifications collected from the wizard bus."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from skyfolio.core.events import NOTIFICATION, EventBus, Severity


@dataclass(frozen=True)
class Notification:
    message: str
    severity: Severity
    source: str


class NotificationLog:
    """Keeps every notification published on a bus, newest last."""

    def __init__(self, bus: EventBus, on_notify: Callable[[Notification], None] | None = None):
        self.items: list[Notification] = []
        self.on_notify = on_notify
        bus.subscribe(NOTIFICATION, self._on_notification)

    @property
    def latest(self) -> Notification | None:
        return self.items[-1] if self.items else None

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [n.message for n in self.items if severity is None or n.severity == severity]

    def clear(self) -> None:
        self.items.clear()

    def _on_notification(self, data: dict[str, Any]) -> None:
        item = Notification(
            message=str(data.get("message", "")),
            severity=Severity(data.get("severity", Severity.INFO.value)),
            source=str(data.get("source", "")),
        )
        self.items.append(item)
        if self.on_notify is not None:
            self.on_notify(item)
