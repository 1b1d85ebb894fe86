"""Tests for the event bus."""

from nightcity.state.event_bus import EventBus, EventType


class TestSubscription:
    def test_handler_receives_event(self, bus):
        received = []
        bus.on(EventType.LEVEL_UP, received.append)
        bus.emit(EventType.LEVEL_UP, level=3)

        assert len(received) == 1
        assert received[0].type == EventType.LEVEL_UP
        assert received[0].data == {"level": 3}

    def test_only_matching_type(self, bus):
        received = []
        bus.on(EventType.ITEM_ADDED, received.append)
        bus.emit(EventType.ITEM_REMOVED, item_id="x")
        assert received == []

    def test_duplicate_subscription_ignored(self, bus):
        received = []
        bus.on(EventType.GAME_SAVED, received.append)
        bus.on(EventType.GAME_SAVED, received.append)
        assert bus.listener_count(EventType.GAME_SAVED) == 1

    def test_off(self, bus):
        received = []
        bus.on(EventType.GAME_SAVED, received.append)
        bus.off(EventType.GAME_SAVED, received.append)
        bus.off(EventType.GAME_LOADED, received.append)
        bus.emit(EventType.GAME_SAVED)
        assert received == []

    def test_failing_handler_isolated(self, bus, caplog):
        """A raising handler is logged; later handlers still run."""
        received = []

        def broken(event):
            raise ValueError("bad handler")

        bus.on(EventType.GAME_RESET, broken)
        bus.on(EventType.GAME_RESET, received.append)
        bus.emit(EventType.GAME_RESET)

        assert len(received) == 1
        assert "Error in handler for game.reset" in caplog.text

    def test_clear(self, bus):
        bus.on(EventType.GAME_RESET, lambda e: None)
        bus.clear()
        assert bus.listener_count(EventType.GAME_RESET) == 0


class TestHistory:
    def test_filtered(self, bus):
        bus.emit(EventType.GAME_SAVED)
        bus.emit(EventType.GAME_LOADED)
        bus.emit(EventType.GAME_SAVED)

        assert len(bus.get_history()) == 3
        assert len(bus.get_history(EventType.GAME_SAVED)) == 2

    def test_limit(self):
        bus = EventBus(history_limit=3)
        for level in range(5):
            bus.emit(EventType.LEVEL_UP, level=level)
        assert [e.data["level"] for e in bus.get_history()] == [2, 3, 4]

    def test_buses_are_independent(self):
        """Each game owns its bus."""
        first, second = EventBus(), EventBus()
        first.emit(EventType.GAME_SAVED)
        assert second.get_history() == []
