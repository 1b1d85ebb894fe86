"""
Story parsing.

Mines a block of narrative prose for game-state signals: experience,
damage, healing, eddies, street cred, items gained or lost, movement,
combat, trigger phrases and memorable beats.

extract() is a pure function. It never touches a store; the
GameStateManager decides what each signal does to the game.

The patterns are deliberately loose. A false positive costs a stray
junk item or a few XP; a missed beat costs continuity. Err on the side
of matching.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class TriggerKind(str, Enum):
    """Stock story beats that carry their own state change."""
    COMBAT = "combat"
    DISCOVERY = "discovery"
    NPC_ENCOUNTER = "npc_encounter"
    LOCATION_CHANGE = "location_change"
    EXPERIENCE_GAIN = "experience_gain"


@dataclass
class StoryUpdates:
    """Everything one narrative turn says happened."""
    stats_updated: bool = False
    location_changed: bool = False
    inventory_changed: bool = False
    combat_occurred: bool = False
    items_found: list[str] = field(default_factory=list)
    items_lost: list[str] = field(default_factory=list)
    experience_gained: int = 0
    damage_dealt: int = 0  # reserved; nothing measures outgoing damage yet
    damage_taken: int = 0
    new_location: str | None = None

    health_restored: int = 0
    eddies_gained: int = 0
    eddies_spent: int = 0
    cred_delta: int = 0
    triggers: list[TriggerKind] = field(default_factory=list)
    key_events: list[str] = field(default_factory=list)
    choices: list[str] = field(default_factory=list)
    npcs_met: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True when observers should be told about this turn."""
        return self.stats_updated or self.location_changed or self.inventory_changed


# -----------------------------------------------------------------------------
# Pattern tables
# -----------------------------------------------------------------------------

_CLAUSE_END = r"(?:[.!?]|$)"
_EDDIES = r"(?:eddies|eddie|eurodollars?|€\$)"
_CRED = r"(?:street\s+cred|cred\s+rating|reputation)"

EXPERIENCE_PATTERNS = [
    re.compile(r"\b(?:gain(?:s|ed)?|earn(?:s|ed)?|receive(?:s|d)?)\s+(\d+)\s+(?:experience|exp|xp)\b"),
]

# Improvement with no number attached
FLAT_EXPERIENCE_PATTERN = re.compile(r"\b(?:you\s+learn|skill\s+improved|breakthrough)")
FLAT_EXPERIENCE_AMOUNT = 25

DAMAGE_PATTERNS = [
    re.compile(
        r"\b(?:you(?:\s+have|'ve)?\s+(?:take|took|taken)|(?:you\s+)?(?:suffer(?:ed)?|received?))\s+(\d+)\s+"
        r"(?:points?\s+of\s+)?(?:damage|harm|injury)"
    ),
    re.compile(r"\b(?:hits?|dealt|damaged)\s+(?:you\s+)?for\s+(\d+)"),
]

HEAL_PATTERNS = [
    re.compile(r"\b(?:heal|restore|recover|regain)(?:s|ed)?\s+(\d+)\s*(?:health|hp|hit\s+points?)"),
]

EDDIES_GAIN_PATTERNS = [
    re.compile(
        rf"\b(?:receive|get|gain|earn|find|discover|collect|obtain)(?:s|ed|d)?\s+(\d+)\s*{_EDDIES}"
    ),
    re.compile(
        rf"\b(\d+)\s*{_EDDIES}\s+(?:(?:is|are|was|were)\s+)?"
        r"(?:added|deposited|transferred|given)"
    ),
    re.compile(rf"\b(?:payment|transaction)\s+of\s+(\d+)\s*{_EDDIES}"),
]

EDDIES_SPEND_PATTERNS = [
    re.compile(rf"\b(?:lose|lost|spend|spent|cost|costs|pay|pays|paid)\s+(\d+)\s*{_EDDIES}"),
    re.compile(
        rf"\b(\d+)\s*{_EDDIES}\s+(?:(?:is|are|was|were)\s+)?"
        r"(?:lost|deducted|taken|stolen)"
    ),
]

CRED_GAIN_PATTERNS = [
    re.compile(rf"\b(?:gain|earn|increase)(?:s|ed|d)?\s+(\d+)\s*{_CRED}"),
]

CRED_LOSS_PATTERNS = [
    re.compile(rf"\b(?:lose|lost|decrease)(?:s|d)?\s+(\d+)\s*{_CRED}"),
]

ITEM_FOUND_PATTERNS = [
    re.compile(
        rf"\b(?:find|discover|pick\s+up|obtain|acquire|get)\s+(?:(?:a|an|the)\s+)?([^.!?]+?){_CLAUSE_END}"
    ),
    re.compile(rf"\b(?:loot|scavenge|take)\s+(?:(?:a|an|the)\s+)?([^.!?]+?){_CLAUSE_END}"),
]

ITEM_LOST_PATTERNS = [
    re.compile(
        rf"\b(?:lose|drop|break|destroy|stolen)\s+(?:(?:your|the)\s+)?([^.!?]+?){_CLAUSE_END}"
    ),
]

# Nouns that always count as items, whatever the phrase length
ITEM_NOUNS: tuple[str, ...] = (
    "credstick", "data shard", "ammo", "weapon", "armor", "cyberdeck",
    "implant", "chip", "stimpack", "food", "drink", "tool", "component",
)

# An item phrase ends at the first clause break
_CLAUSE_BREAK = re.compile(r"\s+(?:and|but|while|which|that|as|before|after|then)\s+|[,;:]")

# "take 15 damage" or "get 200 eddies" are stat changes, not loot
_STAT_QUANTITY = re.compile(
    r"^\d+\s*(?:points?\s+of\s+)?(?:damage|harm|injury|experience|exp|xp|"
    r"eddies|eddie|eurodollars?|€\$|health|hp|hit\s+points?|street\s+cred|cred|reputation)"
)

_NOT_ITEMS = frozenset({
    "yourself", "himself", "herself", "themselves", "it", "that",
    "nothing", "out", "away", "ready", "cover", "aim",
})

# Any mention of walking out wins over every other movement phrase
LEAVING_PATTERN = re.compile(
    r"\b(?:you\s+(?:exit|leave|step\s+out(?:side)?)|leaving|exiting|"
    r"stepping\s+out(?:side)?|step\s+outside|heading\s+out|outside\s+the\s+apartment)\b"
)
LEAVING_DESTINATION = "watson_streets"

LOCATION_PATTERNS = [
    re.compile(
        r"\b(?:enter|arrive\s+at|go\s+to|travel\s+to|move\s+to|head\s+to|walk\s+to)\s+"
        rf"([^.!?]+?){_CLAUSE_END}"
    ),
    re.compile(rf"\byou(?:'re|’re|\s+are)\s+now\s+in\s+([^.!?]+?){_CLAUSE_END}"),
    re.compile(rf"\b(?:welcome\s+to|you\s+find\s+yourself\s+in)\s+([^.!?]+?){_CLAUSE_END}"),
    re.compile(rf"\b(?:stepping|walking)\s+into\s+([^.!?]+?){_CLAUSE_END}"),
    re.compile(rf"\bentering\s+(the\s+[^.!?]+?){_CLAUSE_END}"),
]

COMBAT_PATTERNS = [
    re.compile(r"attack|fight|combat|battle|engage"),
    re.compile(r"gun|weapon|sword|blade"),
]

# At most one trigger per kind fires, in table order
STORY_TRIGGERS: list[tuple[TriggerKind, tuple[str, ...]]] = [
    (TriggerKind.COMBAT, (
        "you are attacked", "combat begins", "fight starts", "draws a weapon", "opens fire",
    )),
    (TriggerKind.DISCOVERY, ("you find a", "discover a", "spot a", "notice a")),
    (TriggerKind.NPC_ENCOUNTER, (
        "a person approaches", "someone calls out", "a figure emerges", "you meet",
    )),
    (TriggerKind.LOCATION_CHANGE, ("you arrive at", "entering", "you reach", "the doors open to")),
    (TriggerKind.EXPERIENCE_GAIN, ("you learn", "breakthrough", "understanding dawns", "skill improves")),
]

_STAT_TRIGGERS = frozenset({
    TriggerKind.COMBAT, TriggerKind.NPC_ENCOUNTER, TriggerKind.EXPERIENCE_GAIN,
})

KEY_EVENT_PATTERNS = [
    re.compile(r"\byou (?:meet|encounter) [a-z\s]+"),
    re.compile(r"\byou (?:agree|decide|choose) to [^.]+"),
    re.compile(r"\b(?:combat|fight|battle) (?:begins|starts|erupts)"),
    re.compile(r"\byou (?:discover|find|learn) [^.]+"),
    # Subject capped at four words so a miss stays linear in text length
    re.compile(r"\b[a-z]+(?: [a-z]+){0,3} (?:dies|is killed|attacks you)"),
    re.compile(r"\byou (?:gain|lose) [^.]+"),
]

CHOICE_PATTERNS = [
    re.compile(r"\byou (?:decide|choose|agree|refuse) to [^.]+"),
    re.compile(r"\byou (?:accept|decline|take) [^.]+"),
]

# Runs on the original casing: names are capitalized
NPC_PATTERN = re.compile(
    r"\b(?i:you)\s+(?i:talk\s+to|speak\s+with|meet)\s+([A-Z][a-zA-Z'-]*(?:\s+[A-Z][a-zA-Z'-]*)*)"
)

IMAGE_PROMPT_PATTERN = re.compile(r"\[IMAGE_PROMPT:\s*(.*?)\]", re.DOTALL)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _sum_matches(patterns: list[re.Pattern], text: str) -> int:
    """Sum the first group of every match of every pattern."""
    return sum(
        int(match.group(1))
        for pattern in patterns
        for match in pattern.finditer(text)
    )


def is_valid_item_name(name: str) -> bool:
    """Allow-listed noun, or a phrase of plausible length."""
    lowered = name.lower()
    if any(noun in lowered for noun in ITEM_NOUNS):
        return True
    return 4 < len(name) < 49


def _item_phrase(raw: str) -> str | None:
    """Trim a captured phrase to its first clause and reject non-items."""
    phrase = _CLAUSE_BREAK.split(raw, maxsplit=1)[0].strip()
    if not phrase or _STAT_QUANTITY.match(phrase):
        return None
    if phrase.split()[0] in _NOT_ITEMS:
        return None
    return phrase if is_valid_item_name(phrase) else None


def _collect_items(patterns: list[re.Pattern], text: str) -> list[str]:
    items = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            phrase = _item_phrase(match.group(1))
            if phrase:
                items.append(phrase)
    return items


def _detect_location(text: str) -> str | None:
    if LEAVING_PATTERN.search(text):
        return LEAVING_DESTINATION

    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            destination = match.group(1).strip()
            if destination:
                return destination
    return None


def detect_triggers(text: str) -> list[TriggerKind]:
    """Trigger kinds whose phrases appear in already-lowercased text."""
    return [
        kind for kind, phrases in STORY_TRIGGERS
        if any(phrase in text for phrase in phrases)
    ]


def _first_matches(patterns: list[re.Pattern], text: str) -> list[str]:
    found = []
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            found.append(match.group(0).strip())
    return found


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------

def extract(narrative_text: str) -> StoryUpdates:
    """
    Parse one narrative turn into StoryUpdates.

    Args:
        narrative_text: Raw story prose (image-prompt blocks are ignored)

    Returns:
        StoryUpdates; all zero/empty when nothing was recognized
    """
    original = clean_story_text(narrative_text or "")
    text = original.lower()
    updates = StoryUpdates()
    if not text:
        return updates

    flat_xp = len(FLAT_EXPERIENCE_PATTERN.findall(text)) * FLAT_EXPERIENCE_AMOUNT
    updates.experience_gained = _sum_matches(EXPERIENCE_PATTERNS, text) + flat_xp
    updates.damage_taken = _sum_matches(DAMAGE_PATTERNS, text)
    updates.health_restored = _sum_matches(HEAL_PATTERNS, text)
    updates.eddies_gained = _sum_matches(EDDIES_GAIN_PATTERNS, text)
    updates.eddies_spent = _sum_matches(EDDIES_SPEND_PATTERNS, text)
    updates.cred_delta = (
        _sum_matches(CRED_GAIN_PATTERNS, text) - _sum_matches(CRED_LOSS_PATTERNS, text)
    )

    updates.items_found = _collect_items(ITEM_FOUND_PATTERNS, text)
    updates.items_lost = _collect_items(ITEM_LOST_PATTERNS, text)

    updates.new_location = _detect_location(text)
    updates.location_changed = updates.new_location is not None

    updates.combat_occurred = any(p.search(text) for p in COMBAT_PATTERNS)
    updates.triggers = detect_triggers(text)

    updates.key_events = _first_matches(KEY_EVENT_PATTERNS, text)
    updates.choices = _first_matches(CHOICE_PATTERNS, text)
    updates.npcs_met = [m.group(1).strip() for m in NPC_PATTERN.finditer(original)]

    updates.stats_updated = bool(
        updates.experience_gained
        or updates.damage_taken
        or updates.health_restored
        or updates.eddies_gained
        or updates.eddies_spent
        or updates.cred_delta
        or _STAT_TRIGGERS.intersection(updates.triggers)
    )
    updates.inventory_changed = bool(
        updates.items_found
        or updates.items_lost
        or TriggerKind.DISCOVERY in updates.triggers
    )
    return updates


def extract_image_prompt(text: str) -> str | None:
    """Return the contents of an [IMAGE_PROMPT: ...] block, if any."""
    match = IMAGE_PROMPT_PATTERN.search(text or "")
    if not match:
        return None
    return match.group(1).strip() or None


def clean_story_text(text: str) -> str:
    """Strip [IMAGE_PROMPT: ...] blocks so only prose remains."""
    return IMAGE_PROMPT_PATTERN.sub("", text).strip()
