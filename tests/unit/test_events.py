"""Tests for the wizard event bus and notifications."""

from skyfolio.core.events import NOTIFICATION, STEP_CHANGED, EventBus, Severity, notify
from skyfolio.wizard.notifications import NotificationLog


class TestEventBus:
    """Tests for EventBus."""

    def test_subscribe_and_publish(self):
        bus = EventBus()
        received = []
        bus.subscribe(STEP_CHANGED, received.append)

        bus.publish(STEP_CHANGED, {"step_id": "images"})

        assert received == [{"step_id": "images"}]

    def test_publish_without_data(self):
        bus = EventBus()
        received = []
        bus.subscribe("ping", received.append)

        bus.publish("ping")

        assert received == [{}]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe("ping", received.append)
        bus.unsubscribe("ping", received.append)

        bus.publish("ping", {"n": 1})

        assert received == []

    def test_subscribe_all_sees_event_name(self):
        bus = EventBus()
        seen = []
        bus.subscribe_all(lambda event, data: seen.append((event, data)))

        bus.publish("entity_changed", {"kind": "gear"})

        assert seen == [("entity_changed", {"kind": "gear"})]

    def test_failing_handler_does_not_stop_delivery(self):
        bus = EventBus()
        received = []

        def boom(_data):
            raise RuntimeError("handler failed")

        bus.subscribe("ping", boom)
        bus.subscribe("ping", received.append)

        bus.publish("ping", {"n": 1})

        assert received == [{"n": 1}]

    def test_clear(self):
        bus = EventBus()
        received = []
        bus.subscribe("ping", received.append)
        bus.clear()

        bus.publish("ping")

        assert received == []


class TestNotificationLog:
    """Tests for NotificationLog."""

    def test_collects_in_order(self):
        bus = EventBus()
        log = NotificationLog(bus)

        notify(
            bus,
            "Please upload a main observation image to continue.",
            Severity.INFO,
            source="wizard",
        )
        notify(bus, "Location created successfully.", Severity.SUCCESS, source="location")

        assert log.messages() == [
            "Please upload a main observation image to continue.",
            "Location created successfully.",
        ]
        assert log.latest.severity == Severity.SUCCESS
        assert log.latest.source == "location"

    def test_filter_by_severity(self):
        bus = EventBus()
        log = NotificationLog(bus)

        notify(bus, "ok", Severity.SUCCESS, source="x")
        notify(bus, "bad", Severity.ERROR, source="x")

        assert log.messages(Severity.ERROR) == ["bad"]

    def test_callback_and_clear(self):
        bus = EventBus()
        seen = []
        log = NotificationLog(bus, on_notify=seen.append)

        bus.publish(NOTIFICATION, {"message": "hi", "severity": "warning", "source": "gear"})

        assert seen[0].severity == Severity.WARNING
        log.clear()
        assert log.latest is None
