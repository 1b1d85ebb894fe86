"""
Game state management.

GameStateManager is the single object the host holds for a game. It
owns the four stores (character, inventory, map, narrative memory),
turns narrative text into state changes, and saves or restores the
whole game as one versioned JSON blob.

A narrative turn is applied in a fixed order:
1. Experience, then damage, healing, eddies and street cred
2. Items found, then items lost
3. Movement
4. Trigger-phrase effects (ambushes, discoveries, encounters)
5. Narrative memory capture
6. Listener notification, once, after everything above

Mutations hold a re-entrant lock so listeners on any thread observe a
turn either entirely applied or not at all.
"""

from __future__ import annotations

import json
import logging
import random
import threading
from datetime import datetime
from typing import Callable

from ..context.character_info import build_character_info
from ..context.memory import NarrativeMemoryStore
from ..systems.combat import CombatOutcome, identify_enemy, parse_action, resolve_fight
from ..systems.inventory import Inventory
from ..systems.progression import CharacterProgression
from ..systems.travel import AccessContext, CityMap
from ..tools.story_parser import StoryUpdates, TriggerKind, extract
from .event_bus import EventBus, EventType
from .schema import ActionResult, Origin, Role

logger = logging.getLogger(__name__)


SAVE_VERSION = "1.0.0"
SAVE_KEYS = ("character", "map", "inventory", "narrative", "timestamp", "version")

COMBAT_DAMAGE_RANGE = (5, 15)
COMBAT_SURVIVAL_XP = 15
DISCOVERY_ITEM_TYPES = ("data_shard", "credstick", "ammo", "consumable")
NPC_ENCOUNTER_CRED = 1
TRIGGER_EXPERIENCE = 20

StateListener = Callable[[], None]


class GameStateManager:
    """
    Facade over the game's stores.

    Stores can be injected (tests, alternate data files); anything not
    given is built fresh and wired to this manager's event bus and RNG.
    """

    def __init__(
        self,
        character: CharacterProgression | None = None,
        inventory: Inventory | None = None,
        city_map: CityMap | None = None,
        memory: NarrativeMemoryStore | None = None,
        bus: EventBus | None = None,
        rng: random.Random | None = None,
    ):
        self.bus = bus or EventBus()
        self.rng = rng or random.Random()
        self.character = character or CharacterProgression(bus=self.bus, rng=self.rng)
        self.inventory = inventory or Inventory(bus=self.bus)
        self.city_map = city_map or CityMap(bus=self.bus)
        self.memory = memory or NarrativeMemoryStore()

        self._listeners: list[StateListener] = []
        self._lock = threading.RLock()
        self._trigger_handlers: dict[TriggerKind, Callable[[], None]] = {
            TriggerKind.COMBAT: self._ambush,
            TriggerKind.DISCOVERY: self._discovery,
            TriggerKind.NPC_ENCOUNTER: self._encounter,
            TriggerKind.LOCATION_CHANGE: self._arrival,
            TriggerKind.EXPERIENCE_GAIN: self._insight,
        }

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> None:
        """Call `listener()` after every state change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify_state_change(self) -> None:
        """Tell every listener that state changed. A failing listener is logged and skipped."""
        with self._lock:
            for listener in list(self._listeners):
                try:
                    listener()
                except Exception:
                    logger.exception("State listener failed")
            self.bus.emit(EventType.STATE_CHANGED)

    # -------------------------------------------------------------------------
    # Narrative turns
    # -------------------------------------------------------------------------

    def update_from_story(self, narrative_text: str) -> StoryUpdates:
        """
        Apply one narrative turn to the game.

        Args:
            narrative_text: Story prose as returned by the narrator

        Returns:
            What the parser recognized in the text
        """
        updates = extract(narrative_text)
        with self._lock:
            self._apply(updates, narrative_text)
            if updates.changed:
                self.notify_state_change()
        return updates

    def _apply(self, updates: StoryUpdates, narrative_text: str) -> None:
        character = self.character

        if updates.experience_gained:
            self._grant_experience(updates.experience_gained)
        if updates.damage_taken:
            character.take_damage(updates.damage_taken)
        if updates.health_restored:
            character.heal(updates.health_restored)
        if updates.eddies_gained:
            character.add_eddies(updates.eddies_gained)
        if updates.eddies_spent and not character.spend_eddies(updates.eddies_spent):
            logger.debug(f"Story spent {updates.eddies_spent} eddies V does not have")
        if updates.cred_delta:
            character.add_cred_rating(updates.cred_delta)

        for phrase in updates.items_found:
            self.inventory.add_item_from_story(phrase)
        for phrase in updates.items_lost:
            self.inventory.remove_item_from_story(phrase)

        if updates.location_changed:
            moved = self.city_map.update_location_from_story(
                narrative_text, destination=updates.new_location,
            )
            if moved:
                self.memory.add_location_visit(self.city_map.get_current_location().name)

        for kind in updates.triggers:
            self._trigger_handlers[kind]()

        for event in updates.key_events:
            self.memory.add_key_event(event)
        for choice in updates.choices:
            self.memory.add_important_choice(choice)
        for npc in updates.npcs_met:
            self.memory.update_npc_relationship(npc, "met")
        self.memory.record_turn()

    def _grant_experience(self, amount: int) -> None:
        for event in self.character.add_experience(amount):
            self.memory.add_character_development(event.description)

    # -------------------------------------------------------------------------
    # Trigger effects
    # -------------------------------------------------------------------------

    def _ambush(self) -> None:
        low, high = COMBAT_DAMAGE_RANGE
        defense = self.character.get_stats().defense
        damage = max(1, self.rng.randint(low, high) - defense // 2)
        self.character.take_damage(damage)
        self._grant_experience(COMBAT_SURVIVAL_XP)
        logger.debug(f"Ambush dealt {damage} damage")

    def _discovery(self) -> None:
        self.inventory.add_item_from_story(self.rng.choice(DISCOVERY_ITEM_TYPES))

    def _encounter(self) -> None:
        self.character.add_cred_rating(NPC_ENCOUNTER_CRED)

    def _arrival(self) -> None:
        # Movement itself is resolved from the text by the map
        pass

    def _insight(self) -> None:
        self._grant_experience(TRIGGER_EXPERIENCE)

    # -------------------------------------------------------------------------
    # Player actions
    # -------------------------------------------------------------------------

    def new_character(
        self,
        name: str,
        origin: Origin | str,
        role: Role | str,
        specialization: str | None = None,
    ) -> ActionResult:
        """Fill in the character creation choices in one go."""
        with self._lock:
            self.character.set_name(name)
            self.character.set_origin(origin)
            self.character.set_role(role)
            self.city_map.rename_home(self.character.get_background().name)
            result = ActionResult(True, f"{self.character.get_background().name} hits the streets")
            if specialization:
                result = self.character.set_specialization(specialization)
            self.notify_state_change()
        return result

    def _access(self) -> AccessContext:
        stats = self.character.get_stats()
        held = frozenset(
            slot.item.id for slot in self.inventory.get_inventory() if slot.item is not None
        )
        return AccessContext(level=stats.level, cred_rating=stats.cred_rating, item_ids=held)

    def travel_to(self, location_id: str) -> ActionResult:
        """Player-chosen travel; gated locations check level, cred and items."""
        with self._lock:
            result = self.city_map.travel_to(location_id, self._access())
            if result.success:
                self.memory.add_location_visit(self.city_map.get_current_location().name)
                self.notify_state_change()
        return result

    def fast_travel(self, location_id: str) -> ActionResult:
        with self._lock:
            result = self.city_map.fast_travel(location_id)
            if result.success:
                self.memory.add_location_visit(self.city_map.get_current_location().name)
                self.notify_state_change()
        return result

    def use_item(self, item_id: str) -> ActionResult:
        """Consume a usable item and apply its healing, if any."""
        with self._lock:
            slot = self.inventory.get_item(item_id)
            if slot is None:
                return ActionResult(False, "Item not found")
            item = slot.item
            if not self.inventory.use_item(item_id):
                return ActionResult(False, f"{item.name} can't be used")

            healed = 0
            if item.effects is not None and item.effects.heal:
                healed = self.character.heal(item.effects.heal)
            self.notify_state_change()

        if healed:
            return ActionResult(True, f"Used {item.name}, restored {healed} health")
        return ActionResult(True, f"Used {item.name}")

    def resolve_combat(self, story_text: str, player_action: str = "") -> CombatOutcome:
        """
        Fight the enemy the story describes, the way the player chose.

        Args:
            story_text: The narrative that set up the fight
            player_action: What V does ("shoot", "sneak up", "run")

        Returns:
            The fight's outcome, already applied to the stores
        """
        with self._lock:
            outcome = resolve_fight(
                self.character.get_stats(),
                self.character.get_skills(),
                self.character.get_attributes(),
                identify_enemy(story_text),
                parse_action(player_action),
                self.rng,
            )
            if outcome.damage_taken:
                self.character.take_damage(outcome.damage_taken)
            if outcome.experience_gained:
                self._grant_experience(outcome.experience_gained)
            if outcome.eddies_gained:
                self.character.add_eddies(outcome.eddies_gained)
            for phrase in outcome.loot:
                self.inventory.add_item_from_story(phrase)
            self.memory.add_key_event(outcome.summary)
            self.notify_state_change()

        logger.info(outcome.summary)
        return outcome

    def character_info(self) -> str:
        """Character block for the next narrative prompt."""
        with self._lock:
            return build_character_info(self.character, self.city_map, self.memory)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save_game_state(self) -> str:
        """Serialize every store into one versioned JSON blob."""
        with self._lock:
            blob = {
                "character": self.character.save(),
                "map": self.city_map.save(),
                "inventory": self.inventory.save(),
                "narrative": self.memory.save(),
                "timestamp": datetime.now().isoformat(),
                "version": SAVE_VERSION,
            }
        self.bus.emit(EventType.GAME_SAVED)
        return json.dumps(blob)

    def _parse_game_state(self, data: str) -> tuple:
        """
        Validate a saved blob against every store without touching any.

        Raises:
            ValueError: If the blob is malformed, incomplete or from another version
            TypeError: If a section has the wrong shape
        """
        blob = json.loads(data)
        if not isinstance(blob, dict):
            raise ValueError("save is not a JSON object")
        missing = [key for key in SAVE_KEYS if key not in blob]
        if missing:
            raise ValueError(f"save is missing {', '.join(missing)}")
        if blob["version"] != SAVE_VERSION:
            raise ValueError(f"unsupported save version {blob['version']!r}")

        return (
            blob["timestamp"],
            self.character.parse(blob["character"]),
            self.inventory.parse(blob["inventory"]),
            self.city_map.parse(blob["map"]),
            self.memory.parse(blob["narrative"]),
        )

    def is_valid_game_state(self, data: str) -> bool:
        """True if load_game_state() would accept `data`."""
        try:
            self._parse_game_state(data)
        except (ValueError, TypeError) as e:
            logger.debug(f"Invalid game state: {e}")
            return False
        return True

    def load_game_state(self, data: str) -> bool:
        """
        Replace the whole game with a saved blob.

        Every store's section is validated before any store changes, so a
        bad blob leaves the game exactly as it was.

        Returns:
            True if loaded, False if the blob was rejected
        """
        try:
            timestamp, character, inventory, city_map, memory = self._parse_game_state(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to load game state: {e}")
            return False

        with self._lock:
            self.character.restore(character)
            self.inventory.restore(inventory)
            self.city_map.restore(city_map)
            self.memory.restore(memory)
            logger.info(f"Loaded game saved at {timestamp}")
            self.bus.emit(EventType.GAME_LOADED, timestamp=timestamp)
            self.notify_state_change()
        return True

    def reset_game_state(self) -> None:
        """Start over: every store back to a new game."""
        with self._lock:
            self.character.reset()
            self.inventory.reset()
            self.city_map.reset()
            self.memory.reset()
            self.bus.emit(EventType.GAME_RESET)
            self.notify_state_change()
