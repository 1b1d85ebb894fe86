"""Tests for the city map and travel rules."""

import json

from nightcity.state.event_bus import EventType
from nightcity.state.schema import MapMarker, MarkerType
from nightcity.systems.travel import AccessContext, CityMap


class TestStartingMap:
    def test_start_at_home(self, city_map):
        assert city_map.get_current_location().id == "apartment_v"
        assert city_map.get_travel_history() == []

    def test_watson_open_from_start(self, city_map):
        """The Watson locations are known and open; everything else is not."""
        unlocked = {loc.id for loc in city_map.get_unlocked_locations()}
        assert unlocked == {"apartment_v", "watson_streets", "little_china", "kabuki_market"}
        assert city_map.get_location("corpo_plaza").unlocked is False

    def test_connected(self, city_map):
        ids = [loc.id for loc in city_map.get_connected_locations()]
        assert ids == ["little_china", "kabuki_market", "watson_streets"]

    def test_district_info(self, city_map):
        info = city_map.get_district_info("watson")
        assert info["name"] == "Watson"
        assert len(info["locations"]) == 4

    def test_location_context(self, city_map):
        """The narrator context names the place and its neighbours."""
        context = city_map.get_current_location_context()
        assert context.startswith("Current Location: Your Apartment")
        assert "Connected to: L. China, Kabuki, Watson Streets." in context


class TestTravel:
    """travel_to rules."""

    def test_connected_travel(self, city_map, bus):
        """Travel pushes the old location onto history."""
        result = city_map.travel_to("little_china")

        assert result.success is True
        assert result.message == "Traveled to Little China"
        assert city_map.get_current_location().id == "little_china"
        assert city_map.get_travel_history() == ["apartment_v"]
        event = bus.get_history(EventType.LOCATION_CHANGED)[-1]
        assert event.data == {"before": "apartment_v", "after": "little_china"}

    def test_unknown_location(self, city_map):
        assert city_map.travel_to("mars").message == "Location not found"

    def test_locked_location(self, city_map):
        """Locked destinations are refused and V stays put."""
        result = city_map.travel_to("corpo_plaza")
        assert result.success is False
        assert result.message == "Location not unlocked"
        assert city_map.get_current_location().id == "apartment_v"

    def test_no_route(self, city_map):
        """Unlocked but unconnected, with no fast travel."""
        city_map.unlock_location("city_center")
        result = city_map.travel_to("city_center")
        assert result.message == "No direct route available"
        assert city_map.get_travel_history() == []

    def test_access_requirements(self, city_map):
        """Level and cred gates apply when access is given."""
        city_map.unlock_location("corpo_plaza")
        city_map.travel_to("little_china")

        rookie = AccessContext(level=1, cred_rating=0)
        assert city_map.travel_to("corpo_plaza", rookie).message == "Requires level 10"

        veteran = AccessContext(level=10, cred_rating=10)
        assert city_map.travel_to("corpo_plaza", veteran).message == "Requires street cred 50"

        legend = AccessContext(level=10, cred_rating=50)
        assert city_map.travel_to("corpo_plaza", legend).success is True

    def test_required_items(self, city_map):
        """Missing items are listed."""
        data = json.loads(city_map.save())
        data["current_location"] = "heywood"
        assert city_map.load(json.dumps(data)) is True
        city_map.unlock_location("badlands")

        check = city_map.can_travel_to("badlands", AccessContext(level=20, cred_rating=0))
        assert check.can_travel is False
        assert check.reason == "Requires vehicle_access"

        equipped = AccessContext(level=20, cred_rating=0, item_ids=frozenset({"vehicle_access"}))
        assert city_map.can_travel_to("badlands", equipped).can_travel is True

    def test_without_access_requirements_skipped(self, city_map):
        """Omitting access skips the gate."""
        city_map.unlock_location("corpo_plaza")
        city_map.travel_to("little_china")
        assert city_map.travel_to("corpo_plaza").success is True


class TestFastTravel:
    def test_fast_travel_home(self, city_map):
        city_map.travel_to("little_china")
        result = city_map.fast_travel("apartment_v")
        assert result.success is True
        assert city_map.get_travel_history() == ["apartment_v", "little_china"]

    def test_not_a_fast_travel_point(self, city_map):
        result = city_map.fast_travel("little_china")
        assert result.message == "Fast travel not available to this location"


class TestFlags:
    """discovered and unlocked only ever go up."""

    def test_flags_survive_travel(self, city_map):
        city_map.unlock_location("city_center")
        city_map.discover_location("city_center")
        for destination in ("little_china", "kabuki_market", "apartment_v"):
            city_map.travel_to(destination)

        location = city_map.get_location("city_center")
        assert location.unlocked is True
        assert location.discovered is True

    def test_unlock_emits_once(self, city_map, bus):
        city_map.unlock_location("westbrook")
        city_map.unlock_location("westbrook")
        assert len(bus.get_history(EventType.LOCATION_UNLOCKED)) == 1

    def test_unknown_ids(self, city_map):
        assert city_map.unlock_location("mars") is False
        assert city_map.discover_location("mars") is False


class TestStoryMovement:
    """update_location_from_story."""

    def test_named_location(self, city_map):
        assert city_map.parse_location_from_story("You walk to Kabuki Market.") == "kabuki_market"
        assert city_map.update_location_from_story("You walk to Kabuki Market.") is True
        assert city_map.get_current_location().id == "kabuki_market"

    def test_no_location(self, city_map):
        assert city_map.parse_location_from_story("Rain hammers the window.") is None
        assert city_map.update_location_from_story("Rain hammers the window.") is False

    def test_restricted_needs_explicit_arrival(self, city_map):
        """A passing mention discovers a restricted area but does not open it."""
        assert city_map.update_location_from_story("You walk to Corpo Plaza.") is False

        location = city_map.get_location("corpo_plaza")
        assert location.discovered is True
        assert location.unlocked is False

    def test_explicit_arrival_unlocks(self, city_map):
        city_map.travel_to("little_china")
        assert city_map.update_location_from_story("You enter Corpo Plaza.") is True
        assert city_map.get_current_location().id == "corpo_plaza"

    def test_alias(self, city_map):
        """Narrator aliases resolve to map ids."""
        assert city_map.parse_location_from_story("You head home.") == "apartment_v"

    def test_destination_wins(self, city_map):
        """A resolved destination overrides the text heuristic."""
        assert city_map.update_location_from_story("You leave.", destination="watson_streets")
        assert city_map.get_current_location().id == "watson_streets"

    def test_same_place_is_not_movement(self, city_map):
        assert city_map.update_location_from_story("You enter Your Apartment.") is False


class TestHome:
    def test_rename_home(self, city_map):
        city_map.rename_home("Jackie")
        home = city_map.get_location("apartment_v")
        assert home.name == "Jackie's Apartment"
        assert home.description.startswith("Jackie's modest apartment")

    def test_blank_name_ignored(self, city_map):
        city_map.rename_home("  ")
        assert city_map.get_location("apartment_v").name == "Your Apartment"


class TestMarkers:
    def test_sorted_by_priority(self, city_map):
        ids = [m.id for m in city_map.get_all_markers()]
        assert ids == ["main_viktor", "side_judy", "vendor_weapons"]

    def test_for_location(self, city_map):
        assert len(city_map.get_markers_for_location("little_china")) == 2

    def test_complete_hides(self, city_map):
        assert city_map.complete_marker("main_viktor") is True
        assert "main_viktor" not in [m.id for m in city_map.get_all_markers()]

    def test_add_marker_rules(self, city_map):
        """Markers need a known location and a fresh id."""
        marker = MapMarker(id="gig_1", location_id="japantown", type=MarkerType.GIGS, title="Gig")
        assert city_map.add_marker(marker) is True
        assert city_map.add_marker(marker) is False

        stray = MapMarker(id="gig_2", location_id="mars", type=MarkerType.GIGS, title="Gig")
        assert city_map.add_marker(stray) is False

    def test_remove_marker(self, city_map):
        assert city_map.remove_marker("side_judy") is True
        assert city_map.remove_marker("side_judy") is False


class TestPersistence:
    def test_round_trip(self, city_map):
        city_map.travel_to("kabuki_market")
        city_map.unlock_location("westbrook")

        restored = CityMap()
        assert restored.load(city_map.save()) is True
        assert restored.get_current_location() == city_map.get_current_location()
        assert restored.get_all_locations() == city_map.get_all_locations()
        assert restored.get_travel_history() == city_map.get_travel_history()

    def test_unknown_location_rejected(self, city_map):
        """Saves naming locations outside the catalog are refused."""
        data = json.loads(city_map.save())
        mars = dict(data["locations"]["japantown"], id="mars", name="Mars")
        data["locations"]["mars"] = mars

        before = city_map.save()
        assert city_map.load(json.dumps(data)) is False
        assert city_map.save() == before

    def test_unknown_current_location_rejected(self, city_map):
        data = json.loads(city_map.save())
        data["current_location"] = "mars"
        assert city_map.load(json.dumps(data)) is False

    def test_reset(self, city_map):
        city_map.travel_to("little_china")
        city_map.reset()
        assert city_map.get_current_location().id == "apartment_v"
        assert city_map.get_travel_history() == []
