"""Event bus connecting wizard steps, entity stores and the orchestrator.

Each wizard owns one bus. Step controllers publish ``step_changed``, entity
stores publish ``entity_changed`` and everybody publishes ``notification``.
Subscribers never see each other; they only see events.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from skyfolio.core.logging import get_logger

_logger = get_logger(__name__)

STEP_CHANGED = "step_changed"
ENTITY_CHANGED = "entity_changed"
NOTIFICATION = "notification"


class EventBus:
    """Simple pub/sub bus.

    Example:
        bus = EventBus()

        def on_step_changed(data):
            print(data["step_id"], data["data"]["isValid"])

        bus.subscribe("step_changed", on_step_changed)
        bus.publish("step_changed", {"step_id": "images", "data": {"isValid": False}})
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[dict[str, Any]], None]]] = defaultdict(list)
        self._all_subscribers: list[Callable[[str, dict[str, Any]], None]] = []

    def subscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        """Subscribe to an event.

        Args:
            event: Event name
            callback: Callback function (receives event data dict)
        """
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        if event in self._subscribers and callback in self._subscribers[event]:
            self._subscribers[event].remove(callback)

    def subscribe_all(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        """Subscribe to all published events.

        Args:
            callback: Callback function (receives event name and event data dict)
        """
        self._all_subscribers.append(callback)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Publish an event.

        Handler exceptions are logged and do not stop delivery to the
        remaining subscribers.

        Args:
            event: Event name
            data: Event data (optional)
        """
        data = data or {}

        for cb_event in list(self._subscribers.get(event, [])):
            try:
                cb_event(data)
            except Exception as e:
                tb = traceback.format_exc()
                _logger.error(
                    f"Error in event handler for '{event}' (callback={cb_event}): "
                    f"{type(e).__name__}: {e}\n{tb}"
                )

        for cb_all in list(self._all_subscribers):
            try:
                cb_all(event, data)
            except Exception as e:
                tb = traceback.format_exc()
                _logger.error(
                    f"Error in all-event handler (event='{event}', callback={cb_all}): "
                    f"{type(e).__name__}: {e}\n{tb}"
                )

    def clear(self) -> None:
        """Clear all subscribers."""
        self._subscribers.clear()
        self._all_subscribers.clear()


class Severity(StrEnum):
    """Notification severity. Blocked navigation is INFO, failed mutations are ERROR."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def notify(bus: EventBus, message: str, severity: Severity, *, source: str) -> None:
    """Publish a user-facing notification on ``bus``."""
    bus.publish(
        NOTIFICATION,
        {"message": message, "severity": severity.value, "source": source},
    )
