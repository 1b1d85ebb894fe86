"""Tests for narrative text parsing."""

import time

import pytest

from nightcity.tools.story_parser import (
    StoryUpdates,
    TriggerKind,
    clean_story_text,
    extract,
    extract_image_prompt,
    is_valid_item_name,
)


def assert_no_signals(updates: StoryUpdates):
    assert updates.experience_gained == 0
    assert updates.damage_taken == 0
    assert updates.damage_dealt == 0
    assert updates.items_found == []
    assert updates.items_lost == []
    assert updates.stats_updated is False
    assert updates.inventory_changed is False
    assert updates.location_changed is False
    assert updates.combat_occurred is False
    assert updates.new_location is None
    assert updates.changed is False


class TestQuietText:
    """Text with nothing in it changes nothing."""

    @pytest.mark.parametrize("text", ["", "the weather is nice today", "   "])
    def test_no_signals(self, text):
        """Empty or uneventful prose yields an all-zero result."""
        assert_no_signals(extract(text))

    def test_none_is_tolerated(self):
        """None is treated like empty text."""
        assert_no_signals(extract(None))


class TestExperience:
    """Experience detection."""

    def test_numbered_experience(self):
        """'gain 25 experience' is picked up."""
        updates = extract("You successfully hack into the terminal and gain 25 experience.")
        assert updates.experience_gained == 25
        assert updates.stats_updated is True

    def test_every_match_counts(self):
        """Multiple awards in one passage are summed."""
        updates = extract("You gain 10 xp. Later you earn 15 experience.")
        assert updates.experience_gained == 25

    def test_improvement_without_number(self):
        """Generic improvement phrases award the flat default."""
        updates = extract("Skill improved. You feel sharper.")
        assert updates.experience_gained == 25
        assert updates.stats_updated is True


class TestDamageAndHealing:
    """Incoming damage and healing."""

    def test_hits_you_for(self):
        """'hits you for N' counts as damage taken."""
        updates = extract("The explosion hits you for 15 damage.")
        assert updates.damage_taken == 15
        assert updates.stats_updated is True

    def test_points_of_damage(self):
        """'suffer N points of damage' counts as damage taken."""
        assert extract("You suffer 7 points of damage.").damage_taken == 7

    @pytest.mark.parametrize("text", [
        "The ganger takes 30 damage.",
        "Your shot lands and the ganger takes 30 damage.",
        "The drone suffers 12 points of damage.",
    ])
    def test_enemy_damage_not_taken(self, text):
        """Damage to someone else leaves V's health alone."""
        assert extract(text).damage_taken == 0

    def test_perfect_tense(self):
        assert extract("You've taken 20 damage since the ambush.").damage_taken == 20

    def test_healing(self):
        """'recover N health' is picked up."""
        updates = extract("You recover 20 health.")
        assert updates.health_restored == 20
        assert updates.stats_updated is True

    def test_outgoing_damage_not_measured(self):
        """damage_dealt stays zero."""
        assert extract("You hit the ganger for 30.").damage_dealt == 0


class TestEddiesAndCred:
    """Currency and reputation."""

    def test_eddies_received(self):
        """Payment phrases add eddies."""
        updates = extract("You receive 200 eddies for the job.")
        assert updates.eddies_gained == 200
        assert updates.stats_updated is True

    def test_eddies_spent(self):
        """Costs subtract eddies."""
        updates = extract("The ripperdoc job costs 300 eddies.")
        assert updates.eddies_spent == 300

    def test_cred_gain_and_loss(self):
        """Cred changes net out."""
        updates = extract("You gain 5 street cred. Then you lose 3 reputation.")
        assert updates.cred_delta == 2
        assert updates.stats_updated is True

    def test_stat_quantity_is_not_an_item(self):
        """'lose 3 reputation' is not a lost item."""
        assert extract("You lose 3 reputation.").items_lost == []


class TestItems:
    """Items found and lost."""

    def test_phrase_cut_at_clause_break(self):
        """The item phrase ends at the first comma or conjunction."""
        updates = extract("You pick up a credstick, then move on.")
        assert updates.items_found == ["credstick"]
        assert updates.inventory_changed is True

    def test_allow_listed_short_noun(self):
        """Short nouns on the allow-list are accepted."""
        assert extract("You find ammo.").items_found == ["ammo"]

    @pytest.mark.parametrize("text", ["You get it.", "You find nothing."])
    def test_pronouns_rejected(self, text):
        """Pronoun objects are not items."""
        assert extract(text).items_found == []

    def test_overlong_phrase_rejected(self):
        """Phrases of 49 characters or more without an item noun are dropped."""
        text = "You find an overwhelming sense of profound existential dread about everything."
        assert extract(text).items_found == []

    def test_lost_item(self):
        """'drop your X' is a lost item."""
        updates = extract("You drop your pistol.")
        assert updates.items_lost == ["pistol"]
        assert updates.inventory_changed is True

    @pytest.mark.parametrize("name,valid", [
        ("chip", True),
        ("abc", False),
        ("plasma cutter", True),
        ("x" * 60, False),
    ])
    def test_item_name_validity(self, name, valid):
        """Allow-listed noun, or length strictly between 4 and 49."""
        assert is_valid_item_name(name) is valid


class TestLocation:
    """Movement detection."""

    def test_leaving_apartment(self):
        """Leaving phrases resolve to the Watson streets."""
        updates = extract(
            "You step outside your apartment and head to the Watson district streets."
        )
        assert updates.location_changed is True
        assert updates.new_location == "watson_streets"

    def test_leaving_beats_other_movement(self):
        """A leaving phrase wins over a later destination."""
        updates = extract("You leave the bar and travel to Japantown.")
        assert updates.new_location == "watson_streets"

    def test_travel_phrase(self):
        """'travel to X' records X."""
        updates = extract("You travel to Japantown.")
        assert updates.location_changed is True
        assert updates.new_location == "japantown"

    def test_status_phrase(self):
        """'you're now in X' records X."""
        assert extract("You're now in the Afterlife.").new_location == "the afterlife"


class TestCombatAndTriggers:
    """Combat flag and trigger phrases."""

    def test_weapon_noun_flags_combat(self):
        """Weapon nouns flag combat."""
        assert extract("A gunshot rings out.").combat_occurred is True

    def test_combined_event(self):
        """Item, experience, damage and combat in one passage."""
        updates = extract(
            "You find a valuable data shard and gain 30 experience. "
            "A guard attacks but you take 15 damage."
        )
        assert any("data shard" in item for item in updates.items_found)
        assert updates.experience_gained == 30
        assert updates.damage_taken == 15
        assert updates.combat_occurred is True

    def test_triggers_in_table_order(self):
        """Triggers come out once each, in table order."""
        updates = extract("You meet a stranger. Suddenly you are attacked.")
        assert updates.triggers == [TriggerKind.COMBAT, TriggerKind.NPC_ENCOUNTER]
        assert updates.stats_updated is True

    def test_trigger_fires_once_per_kind(self):
        """Repeated phrases of one kind fire once."""
        updates = extract("You spot a drone. You notice a camera.")
        assert updates.triggers == [TriggerKind.DISCOVERY]
        assert updates.inventory_changed is True


class TestNarrativeCapture:
    """Key events, choices and NPC names."""

    def test_npc_name_keeps_casing(self):
        """NPC names come from the original text."""
        updates = extract("You talk to Rogue Amendiares at the bar.")
        assert updates.npcs_met == ["Rogue Amendiares"]

    def test_choice_recorded(self):
        """Decisions are captured as choices and key events."""
        updates = extract("You decide to help Judy.")
        assert updates.choices == ["you decide to help judy"]
        assert "you decide to help judy" in updates.key_events

    def test_long_unpunctuated_text(self):
        """A long run-on passage parses in well under a second."""
        text = "the rain keeps falling on the neon street " * 3000 + "and a ganger attacks you."

        started = time.perf_counter()
        updates = extract(text)

        assert time.perf_counter() - started < 1.0
        assert any(event.endswith("a ganger attacks you") for event in updates.key_events)


class TestImagePrompt:
    """IMAGE_PROMPT blocks."""

    TEXT = "Rain falls. [IMAGE_PROMPT: neon alley, rain] You wait."

    def test_extract_prompt(self):
        """The prompt body is returned trimmed."""
        assert extract_image_prompt(self.TEXT) == "neon alley, rain"

    def test_no_prompt(self):
        """No block, no prompt."""
        assert extract_image_prompt("Just prose.") is None

    def test_clean_text(self):
        """Cleaning removes the block."""
        cleaned = clean_story_text(self.TEXT)
        assert "IMAGE_PROMPT" not in cleaned
        assert cleaned.startswith("Rain falls.")

    def test_prompt_content_ignored(self):
        """Signals inside the block are not parsed."""
        assert extract("[IMAGE_PROMPT: you take 50 damage]").damage_taken == 0
