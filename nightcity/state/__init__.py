"""
State for Night City games.

Models, save storage and the event bus. The game state manager and the
save service live in `manager` and `saves`; they are not imported here
because they depend on the systems package, which depends on this one.
"""

from .schema import (
    ActionResult,
    CharacterState,
    District,
    DangerLevel,
    InventorySlot,
    InventoryState,
    Item,
    ItemRarity,
    ItemType,
    Location,
    MapMarker,
    MapState,
    NarrativeMemory,
    Origin,
    Perk,
    Role,
)
from .store import SaveSlotStore, JsonSaveStore, MemorySaveStore
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
)

__all__ = [
    # Schema
    "ActionResult",
    "CharacterState",
    "District",
    "DangerLevel",
    "InventorySlot",
    "InventoryState",
    "Item",
    "ItemRarity",
    "ItemType",
    "Location",
    "MapMarker",
    "MapState",
    "NarrativeMemory",
    "Origin",
    "Perk",
    "Role",
    # Store
    "SaveSlotStore",
    "JsonSaveStore",
    "MemorySaveStore",
    # Event Bus
    "EventBus",
    "EventType",
    "GameEvent",
]
