"""
Typed event bus for one Night City game.

Stores announce what they just did (a level gained, an item picked up,
a district unlocked) without knowing who reacts. The console, the
autosave and tests subscribe to the kinds they care about.

Usage:
    bus = EventBus()
    bus.on(EventType.ITEM_ADDED, lambda e: print(e.data["item_id"]))
    bus.emit(EventType.ITEM_ADDED, item_id="credstick", quantity=1)

The bus is owned by the game, not the module: GameStateManager builds
one and passes it to each store it creates.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event kinds, named `<store>.<what happened>`."""

    # Character sheet
    LEVEL_UP = "character.level_up"
    ATTRIBUTE_INCREASED = "character.attribute_increased"
    SKILL_INCREASED = "character.skill_increased"
    PERK_LEARNED = "character.perk_learned"
    PLAYER_FLATLINED = "character.flatlined"

    # Inventory
    ITEM_ADDED = "inventory.item_added"
    ITEM_REMOVED = "inventory.item_removed"
    ITEM_EQUIPPED = "inventory.item_equipped"

    # City map
    LOCATION_DISCOVERED = "map.location_discovered"
    LOCATION_UNLOCKED = "map.location_unlocked"
    LOCATION_CHANGED = "map.location_changed"

    # Whole game
    STATE_CHANGED = "game.state_changed"
    GAME_SAVED = "game.saved"
    GAME_LOADED = "game.loaded"
    GAME_RESET = "game.reset"

    @property
    def store(self) -> str:
        """The part before the dot: character, inventory, map or game."""
        return self.value.split(".", 1)[0]


@dataclass(frozen=True)
class GameEvent:
    """One published event. `data` holds the keyword arguments given to emit()."""
    type: EventType
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        details = ", ".join(f"{k}={v}" for k, v in self.data.items())
        return f"{self.type.value}({details})"


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous dispatch plus a rolling record of recent events.

    Handlers run inside emit(), in the order they subscribed. An
    exception in one handler is logged and the next handler still runs.
    """

    def __init__(self, history_limit: int = 100):
        self._handlers: dict[EventType, list[EventHandler]] = {}
        self._recent: deque[GameEvent] = deque(maxlen=history_limit)

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Register `handler` for one event kind. Registering twice is a no-op."""
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: EventType, **data) -> GameEvent:
        """
        Publish an event.

        Args:
            event_type: What happened
            **data: Details handlers need (ids, amounts, before/after)

        Returns:
            The event as delivered
        """
        event = GameEvent(type=event_type, data=data)
        self._recent.append(event)

        # Snapshot the list; a handler may unsubscribe while we iterate
        for handler in tuple(self._handlers.get(event_type, ())):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {event_type.value}")

        logger.debug(f"Emitted {event}")
        return event

    def clear(self) -> None:
        """Drop every handler. History is kept."""
        self._handlers.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        """Recent events, oldest first, optionally of one kind only."""
        return [e for e in self._recent if event_type is None or e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._handlers.get(event_type, ()))
