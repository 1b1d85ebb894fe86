"""
Pytest fixtures for Night City tests.

Provides fresh stores wired to a private event bus and a seeded RNG so
trigger effects and backstory hooks are repeatable.
"""

import random

import pytest
from pathlib import Path

# Add repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from nightcity.context.memory import NarrativeMemoryStore
from nightcity.state.event_bus import EventBus
from nightcity.state.manager import GameStateManager
from nightcity.state.saves import SaveGameService
from nightcity.state.store import MemorySaveStore
from nightcity.systems.inventory import Inventory
from nightcity.systems.progression import CharacterProgression
from nightcity.systems.travel import CityMap


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def bus():
    """Private event bus."""
    return EventBus()


@pytest.fixture
def rng():
    """Seeded RNG."""
    return random.Random(2077)


@pytest.fixture
def character(bus, rng):
    """Fresh character sheet."""
    return CharacterProgression(bus=bus, rng=rng)


@pytest.fixture
def inventory(bus):
    """Inventory with the starting gear."""
    return Inventory(bus=bus)


@pytest.fixture
def empty_inventory(bus):
    """Small inventory with nothing in it."""
    return Inventory(max_slots=4, max_weight=10.0, bus=bus, starting_items=False)


@pytest.fixture
def city_map(bus):
    """Map loaded from the bundled location catalog."""
    return CityMap(bus=bus)


@pytest.fixture
def memory():
    """Empty narrative memory."""
    return NarrativeMemoryStore()


@pytest.fixture
def manager(character, inventory, city_map, memory, bus, rng):
    """Game state manager over the fixture stores."""
    return GameStateManager(
        character=character,
        inventory=inventory,
        city_map=city_map,
        memory=memory,
        bus=bus,
        rng=rng,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def save_store():
    """In-memory save slots."""
    return MemorySaveStore()


@pytest.fixture
def save_service(manager, save_store, clock):
    """Save service over in-memory slots with a fake clock."""
    return SaveGameService(manager, save_store, clock=clock)
