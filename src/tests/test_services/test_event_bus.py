"""
Tests for EventBus
"""

import gc
import time

from shuffleboard.services.event_bus import EventBus, Events


class TestEventBusSubscription:
    """Tests for event subscription"""

    def test_subscribe_to_event(self, event_bus):
        """Handler receives {"name", "data"} dicts"""
        received = []

        def handler(event_dict):
            received.append(event_dict)

        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.publish(Events.TAB_CREATED, {"title": "Example"})

        assert received == [{"name": "tree.tab_created", "data": {"title": "Example"}}]

    def test_unsubscribe_from_event(self, event_bus):
        received = []

        def handler(event_dict):
            received.append(event_dict)

        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.unsubscribe(Events.TAB_CREATED, handler)
        event_bus.publish(Events.TAB_CREATED, {})

        assert received == []

    def test_duplicate_subscription_is_ignored(self, event_bus):
        received = []

        def handler(event_dict):
            received.append(event_dict)

        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.publish(Events.TAB_CREATED, {})

        assert len(received) == 1

    def test_bound_method_unsubscribe(self, event_bus):
        """Bound methods are matched by instance and function"""

        class Listener:
            def __init__(self):
                self.calls = 0

            def on_event(self, _event):
                self.calls += 1

        listener = Listener()
        event_bus.subscribe(Events.DIAGNOSTIC, listener.on_event)
        event_bus.unsubscribe(Events.DIAGNOSTIC, listener.on_event)
        event_bus.publish(Events.DIAGNOSTIC, {})

        assert listener.calls == 0

    def test_weak_subscriber_is_dropped(self):
        """has_subscribers() ignores dead weak references"""
        bus = EventBus()

        def subscribe_temporary_handler():
            def handler(_event_dict):
                pass

            bus.subscribe(Events.TAB_CREATED, handler, weak=True)

        subscribe_temporary_handler()
        gc.collect()

        assert bus.has_subscribers(Events.TAB_CREATED) is False

    def test_strong_subscriber_survives(self):
        bus = EventBus()
        received = []
        bus.subscribe(Events.TAB_CREATED, lambda e: received.append(e), weak=False)
        gc.collect()
        bus.publish(Events.TAB_CREATED, 1)
        assert len(received) == 1


class TestEventBusDispatch:
    """Tests for inline and threaded dispatch"""

    def test_callback_error_is_counted(self, event_bus):
        def bad(_event):
            raise RuntimeError("boom")

        event_bus.subscribe(Events.DIAGNOSTIC, bad)
        event_bus.publish(Events.DIAGNOSTIC, {})

        assert event_bus.get_stats()["errors"] == 1

    def test_threaded_dispatch(self):
        bus = EventBus()
        received = []

        def handler(event_dict):
            received.append(event_dict["data"])

        bus.subscribe(Events.RECORDING_STARTED, handler)
        bus.start()
        try:
            assert bus.is_running
            bus.publish(Events.RECORDING_STARTED, {"file_name": "a"})
            deadline = time.time() + 2.0
            while not received and time.time() < deadline:
                time.sleep(0.01)
        finally:
            bus.stop()

        assert received == [{"file_name": "a"}]
        assert not bus.is_running

    def test_stats(self, event_bus):
        def handler(_event):
            pass

        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.publish(Events.TAB_CREATED)
        stats = event_bus.get_stats()

        assert stats["subscriber_count"] == 1
        assert stats["events_published"] == 1
        assert stats["events_processed"] == 1
        assert stats["processing"] is False

    def test_clear_all(self, event_bus):
        def handler(_event):
            pass

        event_bus.subscribe(Events.TAB_CREATED, handler)
        event_bus.clear_all()
        assert not event_bus.has_subscribers(Events.TAB_CREATED)
