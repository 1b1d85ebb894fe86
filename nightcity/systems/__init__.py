"""Game systems: character progression, inventory, the city map and combat."""

from .progression import CharacterProgression
from .inventory import Inventory, SortKey
from .travel import AccessContext, CityMap
from .combat import CombatOutcome, Enemy, identify_enemy, parse_action, resolve_fight

__all__ = [
    "CharacterProgression",
    "Inventory",
    "SortKey",
    "AccessContext",
    "CityMap",
    "CombatOutcome",
    "Enemy",
    "identify_enemy",
    "parse_action",
    "resolve_fight",
]
