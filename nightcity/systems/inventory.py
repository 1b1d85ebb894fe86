"""
Inventory: fixed slots, stacks and equipped gear.

Stackable types (consumable, misc, data) share one slot per item id and
accumulate quantity. Everything else takes one slot per unit. Weight and
slot limits are reported by can_add_item(); add_item() itself only
refuses when there is nowhere to put the item.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING

from ..state.catalog import STARTING_ITEMS, STORY_ITEM_TEMPLATES
from ..state.event_bus import EventType
from ..state.schema import (
    RARITY_ORDER,
    InventorySlot,
    InventoryState,
    Item,
    ItemEffects,
    ItemRarity,
    ItemType,
)

if TYPE_CHECKING:
    from ..state.event_bus import EventBus

logger = logging.getLogger(__name__)


DEFAULT_MAX_SLOTS = 20
DEFAULT_MAX_WEIGHT = 100.0


class SortKey(str, Enum):
    NAME = "name"
    TYPE = "type"
    RARITY = "rarity"
    VALUE = "value"
    WEIGHT = "weight"


# Value sorts richest first; every other key ascends
_SORT_KEYS = {
    SortKey.NAME: lambda item: item.name.lower(),
    SortKey.TYPE: lambda item: item.type.value,
    SortKey.RARITY: lambda item: RARITY_ORDER[item.rarity],
    SortKey.VALUE: lambda item: -item.value,
    SortKey.WEIGHT: lambda item: item.weight,
}


def make_item(
    item_id: str,
    name: str,
    item_type: ItemType | str = ItemType.MISC,
    **fields,
) -> Item:
    """Build an Item, filling anything not given with defaults."""
    return Item(id=item_id, name=name, type=ItemType(item_type), **fields)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


def item_from_phrase(phrase: str) -> Item:
    """
    Infer an item from a narrative noun phrase.

    The first template with a keyword in the phrase decides type, value
    and weight. Unrecognized phrases become plain misc items.
    """
    cleaned = " ".join(phrase.replace("_", " ").split())
    lowered = cleaned.lower()
    template = next(
        (t for t in STORY_ITEM_TEMPLATES if any(k in lowered for k in t.keywords)),
        None,
    )
    name = cleaned.title()
    item_id = f"story_{_slug(cleaned)}"

    if template is None:
        return make_item(item_id, name, ItemType.MISC, value=10, weight=0.5,
                         description="Something you picked up on the streets.")

    return make_item(
        item_id,
        name,
        template.type,
        rarity=template.rarity,
        value=template.value,
        weight=template.weight,
        usable=template.usable,
        equippable=template.equippable,
        effects=ItemEffects(heal=template.heal) if template.heal else None,
        description="Something you picked up on the streets.",
    )


class Inventory:
    """
    Slot-based inventory with equip tracking.

    Read accessors return deep copies.
    """

    def __init__(
        self,
        max_slots: int = DEFAULT_MAX_SLOTS,
        max_weight: float = DEFAULT_MAX_WEIGHT,
        bus: EventBus | None = None,
        starting_items: bool = True,
    ):
        self._bus = bus
        self._starting_items = starting_items
        self._state = self._new_state(max_slots, max_weight)

    def _new_state(self, max_slots: int, max_weight: float) -> InventoryState:
        state = InventoryState(
            max_slots=max_slots,
            max_weight=max_weight,
            slots=[InventorySlot() for _ in range(max_slots)],
        )
        if self._starting_items:
            for item, quantity in STARTING_ITEMS:
                _place(state, item, quantity)
        return state

    def _emit(self, event_type: EventType, **data) -> None:
        if self._bus is not None:
            self._bus.emit(event_type, **data)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_item(self, item: Item, quantity: int = 1) -> bool:
        """
        Add `quantity` units of `item`.

        Returns False, changing nothing, when the units cannot all be placed.
        """
        if quantity <= 0:
            return False
        if not _place(self._state, item, quantity):
            logger.debug(f"No room for {quantity}x {item.id}")
            return False
        self._emit(EventType.ITEM_ADDED, item_id=item.id, quantity=quantity)
        return True

    def remove_item(self, item_id: str, quantity: int = 1) -> bool:
        """Remove units of an item across its slots. False if not enough are held."""
        if quantity <= 0 or self._count(item_id) < quantity:
            return False

        remaining = quantity
        for index, slot in enumerate(self._state.slots):
            if remaining == 0:
                break
            if slot.item is None or slot.item.id != item_id:
                continue
            taken = min(slot.quantity, remaining)
            remaining -= taken
            if taken == slot.quantity:
                self._state.slots[index] = InventorySlot()
            else:
                slot.quantity -= taken

        if self._count(item_id) == 0:
            self._state.equipped = {
                t: equipped for t, equipped in self._state.equipped.items()
                if equipped.id != item_id
            }
        self._emit(EventType.ITEM_REMOVED, item_id=item_id, quantity=quantity)
        return True

    def use_item(self, item_id: str) -> bool:
        """
        Consume one unit of a usable item.

        The effect itself (healing, buffs) is applied by the caller.
        """
        slot = self._find_slot(item_id)
        if slot is None or not slot.item.usable:
            return False
        return self.remove_item(item_id, 1)

    def equip_item(self, item_id: str) -> bool:
        """Equip a held item, replacing whatever held that type's slot."""
        slot = self._find_slot(item_id)
        if slot is None or not slot.item.equippable:
            return False
        self._state.equipped[slot.item.type.value] = slot.item
        self._emit(EventType.ITEM_EQUIPPED, item_id=item_id, type=slot.item.type.value)
        return True

    def unequip_item(self, item_id: str) -> bool:
        for item_type, item in self._state.equipped.items():
            if item.id == item_id:
                del self._state.equipped[item_type]
                return True
        return False

    def sort_inventory(self, key: SortKey | str = SortKey.NAME) -> None:
        """Stable sort of filled slots; empty slots go last."""
        sort_key = _SORT_KEYS[SortKey(key)]
        filled = [slot for slot in self._state.slots if slot.item is not None]
        filled.sort(key=lambda slot: sort_key(slot.item))
        empty = [InventorySlot() for _ in range(self._state.max_slots - len(filled))]
        self._state.slots = filled + empty

    def add_item_from_story(self, phrase: str) -> bool:
        """Add one unit of whatever the narrative phrase describes, if it fits."""
        item = item_from_phrase(phrase)
        if not self.can_add_item(item):
            logger.debug(f"Story item '{phrase}' does not fit")
            return False
        added = self.add_item(item, 1)
        if added:
            logger.info(f"Picked up {item.name}")
        return added

    def remove_item_from_story(self, phrase: str) -> bool:
        """Remove one unit of the first held item the phrase names."""
        lowered = phrase.lower().strip()
        slug = _slug(lowered)
        for slot in self._state.slots:
            if slot.item is None:
                continue
            name = slot.item.name.lower()
            if name in lowered or lowered in name or (slug and slug in slot.item.id):
                logger.info(f"Lost {slot.item.name}")
                return self.remove_item(slot.item.id, 1)
        return False

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _find_slot(self, item_id: str) -> InventorySlot | None:
        for slot in self._state.slots:
            if slot.item is not None and slot.item.id == item_id:
                return slot
        return None

    def _count(self, item_id: str) -> int:
        return sum(
            slot.quantity for slot in self._state.slots
            if slot.item is not None and slot.item.id == item_id
        )

    def get_inventory(self) -> list[InventorySlot]:
        return [slot.model_copy(deep=True) for slot in self._state.slots]

    def get_item(self, item_id: str) -> InventorySlot | None:
        slot = self._find_slot(item_id)
        return slot.model_copy(deep=True) if slot else None

    def has_item(self, item_id: str, quantity: int = 1) -> bool:
        return self._count(item_id) >= quantity

    def get_equipped_items(self) -> dict[str, Item]:
        return {t: item.model_copy(deep=True) for t, item in self._state.equipped.items()}

    def is_equipped(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self._state.equipped.values())

    @property
    def max_slots(self) -> int:
        return self._state.max_slots

    @property
    def max_weight(self) -> float:
        return self._state.max_weight

    def get_total_weight(self) -> float:
        return sum(slot.item.weight * slot.quantity for slot in self._state.slots if slot.item)

    def get_current_capacity(self) -> int:
        """Number of occupied slots."""
        return sum(1 for slot in self._state.slots if slot.item is not None)

    def get_total_value(self) -> int:
        return sum(slot.item.value * slot.quantity for slot in self._state.slots if slot.item)

    def get_items_by_type(self, item_type: ItemType | str) -> list[InventorySlot]:
        item_type = ItemType(item_type)
        return [
            slot.model_copy(deep=True) for slot in self._state.slots
            if slot.item is not None and slot.item.type == item_type
        ]

    def get_items_by_rarity(self, rarity: ItemRarity | str) -> list[InventorySlot]:
        rarity = ItemRarity(rarity)
        return [
            slot.model_copy(deep=True) for slot in self._state.slots
            if slot.item is not None and slot.item.rarity == rarity
        ]

    def can_add_item(self, item: Item, quantity: int = 1) -> bool:
        """Advisory check against both the weight cap and free slots."""
        if self.get_total_weight() + item.weight * quantity > self._state.max_weight:
            return False
        return _slots_needed(self._state, item, quantity) <= _free_slots(self._state)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> str:
        return self._state.model_dump_json()

    @staticmethod
    def parse(data: str) -> InventoryState:
        """
        Validate serialized inventory state.

        Raises:
            ValueError: If the data is not a valid inventory save
        """
        state = InventoryState.model_validate_json(data)
        held = {slot.item.id for slot in state.slots if slot.item is not None}
        for item_type, item in state.equipped.items():
            if item.id not in held or item.type.value != item_type:
                raise ValueError(f"equipped item {item.id} is not held as {item_type}")
        return state

    def restore(self, state: InventoryState) -> None:
        self._state = state

    def load(self, data: str) -> bool:
        try:
            state = self.parse(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Rejected inventory save: {e}")
            return False
        self.restore(state)
        return True

    def reset(self) -> None:
        self._state = self._new_state(self._state.max_slots, self._state.max_weight)


# -----------------------------------------------------------------------------
# Slot placement
# -----------------------------------------------------------------------------

def _free_slots(state: InventoryState) -> int:
    return sum(1 for slot in state.slots if slot.item is None)


def _stack_slot(state: InventoryState, item: Item) -> InventorySlot | None:
    if not item.stackable:
        return None
    for slot in state.slots:
        if slot.item is not None and slot.item.id == item.id:
            return slot
    return None


def _slots_needed(state: InventoryState, item: Item, quantity: int) -> int:
    if item.stackable:
        return 0 if _stack_slot(state, item) is not None else 1
    return quantity


def _place(state: InventoryState, item: Item, quantity: int) -> bool:
    """Put units into slots. All or nothing."""
    stack = _stack_slot(state, item)
    if stack is not None:
        stack.quantity += quantity
        return True

    if _slots_needed(state, item, quantity) > _free_slots(state):
        return False

    per_slot = quantity if item.stackable else 1
    placed = 0
    for index, slot in enumerate(state.slots):
        if placed == quantity:
            break
        if slot.item is None:
            state.slots[index] = InventorySlot(item=item, quantity=per_slot)
            placed += per_slot
    return True
