"""
Night City map: locations, travel and quest markers.

Locations are loaded from data/locations.json. Each one carries two
independent one-way flags. `discovered` means V knows it exists, and
`unlocked` means V may travel there. Only reset() or loading a save
ever clears them.

Travel rules:
1. The destination must be unlocked
2. It must connect to the current location, or offer fast travel
3. The old location is pushed onto the travel history
4. The destination becomes current and discovered

Narrative movement goes through update_location_from_story(), which
finds a location in the prose, discovers it, unlocks it (restricted
areas only on an explicit arrival phrase) and then travels.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ..state.catalog import DISTRICT_PROFILES
from ..state.event_bus import EventType
from ..state.schema import (
    ActionResult,
    DangerLevel,
    District,
    Location,
    MapMarker,
    MapState,
)

if TYPE_CHECKING:
    from ..state.event_bus import EventBus

logger = logging.getLogger(__name__)


LOCATIONS_DATA_PATH = Path(__file__).parent.parent / "data" / "locations.json"

HOME_LOCATION = "apartment_v"

# Words that make a named place read as a destination rather than a mention
_MOVEMENT_CONTEXT = (
    "arrive at", "reach", "enter", "approach", "walk to", "head to",
    "travel to", "go to", "visit", "at", "in", "inside", "outside",
    "near", "around", "toward", "towards",
)
_STATUS_CONTEXT = ("you're now in", "you are now in", "you find yourself in", "welcome to")

_MOVEMENT_WORDS = re.compile(
    r"\b(?:arrive|arriving|enter|entering|head|heading|walk|walking|go|going|"
    r"travel|traveling|reach|reaching|approach|approaching|visit|visiting|step|stepping)\b"
)

_PLACE_NOUNS = r"(?:building|tower|plaza|market|district|bar|club|street|square|center)"

# Explicit arrival phrasing needed before a restricted area unlocks itself
_ARRIVAL_PHRASES = (
    "you enter", "you arrive at", "you're now in", "you are now in",
    "welcome to", "inside", "you find yourself in",
)

# Aliases the narrator uses instead of the map name
STORY_ALIASES: list[tuple[tuple[str, ...], str]] = [
    (("arasaka tower", "arasaka"), "arasaka_headquarters"),
    (("afterlife",), "afterlife_bar"),
    (("clouds",), "clouds"),
    (("your apartment", "your place", "apartment", "home"), HOME_LOCATION),
    (("corpo plaza",), "corpo_plaza"),
    (("badlands",), "badlands"),
    (("heywood",), "heywood"),
    (("santo domingo",), "santo_domingo"),
    (("pacifica",), "pacifica"),
]


@dataclass(frozen=True)
class AccessContext:
    """What V brings to a gated location."""
    level: int
    cred_rating: int
    item_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TravelCheck:
    can_travel: bool
    reason: str = ""


def load_map_data(path: Path | None = None) -> dict:
    """Read the raw location/marker catalog."""
    with open(path or LOCATIONS_DATA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


class CityMap:
    """
    Location graph plus V's position in it.

    Read accessors return deep copies.
    """

    def __init__(
        self,
        bus: EventBus | None = None,
        data_path: Path | None = None,
    ):
        self._bus = bus
        self._data = load_map_data(data_path)
        self._state = self._new_state()

    def _new_state(self) -> MapState:
        return MapState(
            current_location=self._data.get("start_location", HOME_LOCATION),
            locations=self._data["locations"],
            markers=self._data.get("markers", []),
        )

    def _emit(self, event_type: EventType, **data) -> None:
        if self._bus is not None:
            self._bus.emit(event_type, **data)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_current_location(self) -> Location:
        return self._state.locations[self._state.current_location].model_copy(deep=True)

    def get_location(self, location_id: str) -> Location | None:
        location = self._state.locations.get(location_id)
        return location.model_copy(deep=True) if location else None

    def get_all_locations(self) -> list[Location]:
        return [loc.model_copy(deep=True) for loc in self._state.locations.values()]

    def get_discovered_locations(self) -> list[Location]:
        return [loc.model_copy(deep=True) for loc in self._state.locations.values() if loc.discovered]

    def get_unlocked_locations(self) -> list[Location]:
        return [loc.model_copy(deep=True) for loc in self._state.locations.values() if loc.unlocked]

    def get_locations_by_district(self, district: District | str) -> list[Location]:
        district = District(district)
        return [
            loc.model_copy(deep=True) for loc in self._state.locations.values()
            if loc.district == district
        ]

    def get_connected_locations(self, location_id: str | None = None) -> list[Location]:
        location = self._state.locations.get(location_id or self._state.current_location)
        if location is None:
            return []
        return [
            self._state.locations[cid].model_copy(deep=True)
            for cid in location.connected_locations
            if cid in self._state.locations
        ]

    def get_travel_history(self) -> list[str]:
        return list(self._state.travel_history)

    def get_district_info(self, district: District | str) -> dict:
        district = District(district)
        profile = DISTRICT_PROFILES[district]
        return {
            "name": profile.name,
            "description": profile.description,
            "danger_level": profile.danger_level,
            "locations": self.get_locations_by_district(district),
        }

    def get_current_location_context(self) -> str:
        """One-paragraph description of where V is, for the narrator."""
        location = self._state.locations[self._state.current_location]
        parts = [
            f"Current Location: {location.name} "
            f"({location.district.value.replace('_', ' ')}) - {location.description} "
            f"Danger Level: {location.danger_level.value}."
        ]
        if location.connected_locations:
            names = [
                self._state.locations[cid].short_name if cid in self._state.locations else cid
                for cid in location.connected_locations
            ]
            parts.append(f"Connected to: {', '.join(names)}.")
        if location.services:
            parts.append(f"Available services: {', '.join(s.value for s in location.services)}.")
        if location.npcs:
            parts.append(f"Notable contacts: {', '.join(location.npcs)}.")
        return " ".join(parts)

    # -------------------------------------------------------------------------
    # Travel
    # -------------------------------------------------------------------------

    def can_travel_to(self, location_id: str, access: AccessContext | None = None) -> TravelCheck:
        """
        Check whether V can travel to a location right now.

        Args:
            location_id: Destination id
            access: V's level, cred and items; when omitted, access
                requirements are not checked
        """
        target = self._state.locations.get(location_id)
        if target is None:
            return TravelCheck(False, "Location not found")
        if not target.unlocked:
            return TravelCheck(False, "Location not unlocked")

        current = self._state.locations[self._state.current_location]
        if location_id not in current.connected_locations and not target.fast_travel_available:
            return TravelCheck(False, "No direct route available")

        if access is not None and target.access_requirements is not None:
            req = target.access_requirements
            if req.level is not None and access.level < req.level:
                return TravelCheck(False, f"Requires level {req.level}")
            if req.cred_rating is not None and access.cred_rating < req.cred_rating:
                return TravelCheck(False, f"Requires street cred {req.cred_rating}")
            missing = [item for item in req.items if item not in access.item_ids]
            if missing:
                return TravelCheck(False, f"Requires {', '.join(missing)}")

        return TravelCheck(True)

    def travel_to(self, location_id: str, access: AccessContext | None = None) -> ActionResult:
        check = self.can_travel_to(location_id, access)
        if not check.can_travel:
            return ActionResult(False, check.reason)
        return self._arrive(location_id)

    def fast_travel(self, location_id: str) -> ActionResult:
        target = self._state.locations.get(location_id)
        if target is None:
            return ActionResult(False, "Location not found")
        if not target.fast_travel_available:
            return ActionResult(False, "Fast travel not available to this location")
        if not target.discovered:
            return ActionResult(False, "Must discover location before fast travel")
        return self._arrive(location_id)

    def _arrive(self, location_id: str) -> ActionResult:
        target = self._state.locations[location_id]
        previous = self._state.current_location
        self._state.travel_history.append(previous)
        self._state.current_location = location_id
        self.discover_location(location_id)
        logger.info(f"Traveled from {previous} to {location_id}")
        self._emit(EventType.LOCATION_CHANGED, before=previous, after=location_id)
        return ActionResult(True, f"Traveled to {target.name}")

    def discover_location(self, location_id: str) -> bool:
        location = self._state.locations.get(location_id)
        if location is None:
            return False
        if not location.discovered:
            location.discovered = True
            logger.info(f"Discovered {location.name}")
            self._emit(EventType.LOCATION_DISCOVERED, location_id=location_id)
        return True

    def unlock_location(self, location_id: str) -> bool:
        location = self._state.locations.get(location_id)
        if location is None:
            return False
        if not location.unlocked:
            location.unlocked = True
            logger.info(f"Unlocked {location.name}")
            self._emit(EventType.LOCATION_UNLOCKED, location_id=location_id)
        return True

    def rename_home(self, character_name: str) -> None:
        """Personalize the starting apartment for the character."""
        home = self._state.locations.get(HOME_LOCATION)
        name = (character_name or "").strip()
        if home is None or not name:
            return
        home.name = f"{name}'s Apartment"
        home.description = (
            f"{name}'s modest apartment in Watson. Not much, but it's home. "
            "The place where every day in Night City starts."
        )

    # -------------------------------------------------------------------------
    # Narrative movement
    # -------------------------------------------------------------------------

    def parse_location_from_story(self, story_text: str) -> str | None:
        """
        Find the location a narrative passage moves V to.

        Tries, in order: a map name or short name in movement context,
        "the X building"-style references alongside movement words, then
        the alias table. Returns a location id or None.
        """
        text = story_text.lower()

        for location in self._state.locations.values():
            for label in (location.name.lower(), location.short_name.lower()):
                if label not in text:
                    continue
                if any(f"{ctx} {label}" in text for ctx in _MOVEMENT_CONTEXT + _STATUS_CONTEXT):
                    return location.id
                if any(f"{ctx} the {label}" in text for ctx in _MOVEMENT_CONTEXT):
                    return location.id

        moving = _MOVEMENT_WORDS.search(text) is not None
        if moving:
            for location in self._state.locations.values():
                label = re.escape(location.name.lower())
                if re.search(rf"\bthe\s+{label}\b|\b{label}\s+{_PLACE_NOUNS}\b", text):
                    return location.id

            for aliases, location_id in STORY_ALIASES:
                if any(re.search(rf"\b{re.escape(alias)}\b", text) for alias in aliases):
                    return location_id

        return None

    def update_location_from_story(self, story_text: str, destination: str | None = None) -> bool:
        """
        Move V according to a narrative passage.

        Args:
            story_text: The narrative text
            destination: Optional location id already resolved from the
                text; wins over the heuristic when it names a real location

        Returns:
            True if V ended up somewhere new
        """
        if destination in self._state.locations:
            location_id = destination
        else:
            location_id = self.parse_location_from_story(story_text)
        if location_id is None or location_id == self._state.current_location:
            return False

        location = self._state.locations[location_id]
        self.discover_location(location_id)

        if location.danger_level != DangerLevel.RESTRICTED:
            self.unlock_location(location_id)
        elif self._explicit_arrival(story_text.lower(), location):
            self.unlock_location(location_id)

        return self.travel_to(location_id).success

    @staticmethod
    def _explicit_arrival(text: str, location: Location) -> bool:
        labels = (location.name.lower(), location.short_name.lower())
        return any(
            f"{phrase} {label}" in text or f"{phrase} the {label}" in text
            for phrase in _ARRIVAL_PHRASES
            for label in labels
        )

    # -------------------------------------------------------------------------
    # Markers
    # -------------------------------------------------------------------------

    def get_all_markers(self) -> list[MapMarker]:
        """Visible markers, most urgent first."""
        visible = [m.model_copy(deep=True) for m in self._state.markers if m.visible]
        return sorted(visible, key=lambda m: m.priority)

    def get_markers_for_location(self, location_id: str) -> list[MapMarker]:
        return [m for m in self.get_all_markers() if m.location_id == location_id]

    def add_marker(self, marker: MapMarker) -> bool:
        if marker.location_id not in self._state.locations:
            return False
        if any(m.id == marker.id for m in self._state.markers):
            return False
        self._state.markers.append(marker.model_copy(deep=True))
        return True

    def remove_marker(self, marker_id: str) -> bool:
        before = len(self._state.markers)
        self._state.markers = [m for m in self._state.markers if m.id != marker_id]
        return len(self._state.markers) < before

    def complete_marker(self, marker_id: str) -> bool:
        """Mark a marker done. Completed markers are hidden for good."""
        for marker in self._state.markers:
            if marker.id == marker_id:
                marker.completed = True
                marker.visible = False
                return True
        return False

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> str:
        return self._state.model_dump_json()

    def parse(self, data: str) -> MapState:
        """
        Validate serialized map state against the loaded catalog.

        Raises:
            ValueError: If the data is not a valid map save
        """
        state = MapState.model_validate_json(data)
        unknown = set(state.locations) - set(self._data["locations"])
        if unknown:
            raise ValueError(f"unknown locations in save: {sorted(unknown)}")
        # Locations added to the catalog after the save start fresh
        for location_id, raw in self._data["locations"].items():
            if location_id not in state.locations:
                state.locations[location_id] = Location.model_validate(raw)
        return state

    def restore(self, state: MapState) -> None:
        self._state = state

    def load(self, data: str) -> bool:
        try:
            state = self.parse(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Rejected map save: {e}")
            return False
        self.restore(state)
        return True

    def reset(self) -> None:
        self._state = self._new_state()
