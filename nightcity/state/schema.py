"""
Pydantic models for Night City game state.

Every store owns one of the *State models below and serializes it with
model_dump_json(). Loads validate into a fresh model before anything is
swapped in, so a malformed save never half-applies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Origin(str, Enum):
    CORPO = "corpo"
    STREET_KID = "street_kid"
    NOMAD = "nomad"


class Role(str, Enum):
    SOLO = "solo"
    NETRUNNER = "netrunner"
    TECHIE = "techie"
    ROCKERBOY = "rockerboy"
    FIXER = "fixer"
    NOMAD = "nomad"
    MEDIA = "media"
    MEDTECH = "medtech"
    EXEC = "exec"


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    CYBERWARE = "cyberware"
    CONSUMABLE = "consumable"
    QUEST = "quest"
    MISC = "misc"
    DATA = "data"
    TOOL = "tool"


class ItemRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


# Sort order for ItemRarity, lowest first
RARITY_ORDER: dict[ItemRarity, int] = {
    ItemRarity.COMMON: 0,
    ItemRarity.UNCOMMON: 1,
    ItemRarity.RARE: 2,
    ItemRarity.EPIC: 3,
    ItemRarity.LEGENDARY: 4,
}

# Types that share a slot and accumulate quantity
STACKABLE_TYPES: frozenset[ItemType] = frozenset({
    ItemType.CONSUMABLE,
    ItemType.MISC,
    ItemType.DATA,
})


class District(str, Enum):
    CITY_CENTER = "city_center"
    WESTBROOK = "westbrook"
    WATSON = "watson"
    HEYWOOD = "heywood"
    SANTO_DOMINGO = "santo_domingo"
    PACIFICA = "pacifica"
    BADLANDS = "badlands"
    CORPO_PLAZA = "corpo_plaza"


class DangerLevel(str, Enum):
    SAFE = "safe"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"
    RESTRICTED = "restricted"


class ServiceType(str, Enum):
    RIPPERDOC = "ripperdoc"
    WEAPONS_VENDOR = "weapons_vendor"
    ARMOR_VENDOR = "armor_vendor"
    NETRUNNER_SHOP = "netrunner_shop"
    BAR = "bar"
    HOTEL = "hotel"
    GARAGE = "garage"
    BLACK_MARKET = "black_market"
    CORPO_OFFICE = "corpo_office"
    DATA_FORTRESS = "data_fortress"


class MarkerType(str, Enum):
    MAIN_QUEST = "main_quest"
    SIDE_QUEST = "side_quest"
    GIGS = "gigs"
    CYBERPSYCHO = "cyberpsycho"
    TAROT = "tarot"
    VENDOR = "vendor"
    POI = "poi"
    DANGER_ZONE = "danger_zone"


class ProgressionEventType(str, Enum):
    LEVEL_UP = "level_up"
    SKILL_INCREASE = "skill_increase"
    ATTRIBUTE_INCREASE = "attribute_increase"
    PERK_UNLOCKED = "perk_unlocked"
    ACHIEVEMENT = "achievement"


# -----------------------------------------------------------------------------
# Character
# -----------------------------------------------------------------------------

ATTRIBUTE_MIN = 1
ATTRIBUTE_MAX = 20
SKILL_MIN = 1
SKILL_MAX = 20


class CharacterAttributes(BaseModel):
    """The five core attributes, each 1-20."""
    body: int = Field(default=3, ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    intelligence: int = Field(default=3, ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    reflexes: int = Field(default=3, ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    technical: int = Field(default=3, ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)
    cool: int = Field(default=3, ge=ATTRIBUTE_MIN, le=ATTRIBUTE_MAX)


class CharacterSkills(BaseModel):
    """The twelve trainable skills, each 1-20."""
    athletics: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    annihilation: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    street_brawler: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    breach: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    quickhacking: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    assault: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    handguns: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    blades: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    crafting: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    engineering: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    stealth: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)
    cold_blood: int = Field(default=1, ge=SKILL_MIN, le=SKILL_MAX)


ATTRIBUTE_NAMES: tuple[str, ...] = tuple(CharacterAttributes.model_fields)
SKILL_NAMES: tuple[str, ...] = tuple(CharacterSkills.model_fields)


class CharacterStats(BaseModel):
    """
    Level, vitals, currency and derived combat numbers.

    damage, defense, hacking_power, stealth_rating, carry_capacity,
    max_health and max_stamina are derived from attributes, skills and
    perks; they are stored so saves are self-describing but always
    recomputed after a change.
    """
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    experience_to_next: int = Field(default=1000, ge=1)
    attribute_points: int = Field(default=5, ge=0)
    skill_points: int = Field(default=0, ge=0)

    health: int = Field(default=100, ge=0)
    max_health: int = 100
    stamina: int = Field(default=100, ge=0)
    max_stamina: int = 100

    eddies: int = 500
    cred_rating: int = Field(default=1, ge=0, le=100)
    humanity_loss: int = Field(default=0, ge=0)
    max_humanity: int = 100

    damage: int = 10
    defense: int = 5
    hacking_power: int = 5
    stealth_rating: int = 3
    carry_capacity: int = 50


class Appearance(BaseModel):
    gender: str = ""
    hair_style: str = ""
    hair_color: str = ""
    eye_color: str = ""
    facial_features: str = ""
    clothing: str = ""
    distinguishing_marks: str = ""


class CharacterBackground(BaseModel):
    """Identity: who V is, where they came from, what they do."""
    name: str = "V"
    origin: Origin = Origin.STREET_KID
    role: Role = Role.SOLO
    specialization: str | None = None
    background_story: str = ""
    appearance: Appearance = Field(default_factory=Appearance)
    background_hooks: list[str] = Field(default_factory=list)

    # Whether the current origin/role bonus has been applied to the sheet
    origin_selected: bool = False
    role_selected: bool = False

    # Stat points the bonus actually added after clamping, by stat name
    origin_bonus_applied: dict[str, int] = Field(default_factory=dict)
    role_bonus_applied: dict[str, int] = Field(default_factory=dict)


class StatRequirement(BaseModel):
    """Minimum value of one attribute or skill."""
    stat: str
    level: int


class PerkEffect(BaseModel):
    type: Literal["stat_bonus", "skill_bonus", "special_ability", "passive"]
    target: str
    value: float
    description: str


class Perk(BaseModel):
    id: str
    name: str
    description: str
    attribute: str
    cost: int = 1
    attribute_requirement: StatRequirement | None = None
    skill_requirement: StatRequirement | None = None
    effects: list[PerkEffect] = Field(default_factory=list)
    unlocked: bool = False
    learned: bool = False

    @model_validator(mode="after")
    def _learned_implies_unlocked(self) -> "Perk":
        if self.learned and not self.unlocked:
            raise ValueError(f"perk {self.id} is learned but not unlocked")
        return self


class ProgressionEvent(BaseModel):
    type: ProgressionEventType
    title: str
    description: str
    timestamp: datetime = Field(default_factory=datetime.now)
    rewards: dict[str, int] | None = None


class CharacterState(BaseModel):
    """Everything the progression store persists."""
    attributes: CharacterAttributes = Field(default_factory=CharacterAttributes)
    skills: CharacterSkills = Field(default_factory=CharacterSkills)
    stats: CharacterStats = Field(default_factory=CharacterStats)
    background: CharacterBackground = Field(default_factory=CharacterBackground)
    perks: dict[str, Perk] = Field(default_factory=dict)
    progression_history: list[ProgressionEvent] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Inventory
# -----------------------------------------------------------------------------

class ItemStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    damage: int | None = None
    defense: int | None = None
    hacking: int | None = None
    stealth: int | None = None


class ItemBuff(BaseModel):
    model_config = ConfigDict(frozen=True)

    stat: str
    amount: int
    duration: int


class ItemEffects(BaseModel):
    model_config = ConfigDict(frozen=True)

    heal: int | None = None
    buff: ItemBuff | None = None


class ItemRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int | None = None
    attributes: dict[str, int] = Field(default_factory=dict)


class Item(BaseModel):
    """An immutable item definition. Quantity lives on the slot."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    description: str = ""
    value: int = Field(default=0, ge=0)
    weight: float = Field(default=0.0, ge=0)
    stats: ItemStats | None = None
    effects: ItemEffects | None = None
    requirements: ItemRequirements | None = None
    usable: bool = False
    equippable: bool = False

    @property
    def stackable(self) -> bool:
        return self.type in STACKABLE_TYPES


class InventorySlot(BaseModel):
    item: Item | None = None
    quantity: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _quantity_matches_item(self) -> "InventorySlot":
        if (self.item is None) != (self.quantity == 0):
            raise ValueError("slot quantity must be positive exactly when it holds an item")
        return self

    @property
    def is_empty(self) -> bool:
        return self.item is None


class InventoryState(BaseModel):
    max_slots: int = Field(default=20, ge=1)
    max_weight: float = Field(default=100.0, ge=0)
    slots: list[InventorySlot] = Field(default_factory=list)
    equipped: dict[str, Item] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _slot_count(self) -> "InventoryState":
        if len(self.slots) != self.max_slots:
            raise ValueError(
                f"inventory has {len(self.slots)} slots, expected {self.max_slots}"
            )
        return self


# -----------------------------------------------------------------------------
# Map
# -----------------------------------------------------------------------------

class Coordinates(BaseModel):
    x: int
    y: int


class AccessRequirements(BaseModel):
    cred_rating: int | None = None
    level: int | None = None
    items: list[str] = Field(default_factory=list)
    quests_completed: list[str] = Field(default_factory=list)


class Location(BaseModel):
    id: str
    name: str
    short_name: str
    description: str = ""
    district: District
    danger_level: DangerLevel
    coordinates: Coordinates
    connected_locations: list[str] = Field(default_factory=list)
    unlocked: bool = False
    discovered: bool = False
    npcs: list[str] = Field(default_factory=list)
    services: list[ServiceType] = Field(default_factory=list)
    special_features: list[str] = Field(default_factory=list)
    fast_travel_available: bool = False
    access_requirements: AccessRequirements | None = None


class MapMarker(BaseModel):
    id: str
    location_id: str
    type: MarkerType
    title: str
    description: str = ""
    priority: int = 5
    visible: bool = True
    completed: bool = False


class MapState(BaseModel):
    current_location: str
    locations: dict[str, Location]
    markers: list[MapMarker] = Field(default_factory=list)
    travel_history: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _current_location_known(self) -> "MapState":
        if self.current_location not in self.locations:
            raise ValueError(f"unknown current location: {self.current_location}")
        return self


# -----------------------------------------------------------------------------
# Narrative memory
# -----------------------------------------------------------------------------

class NarrativeMemory(BaseModel):
    key_events: list[str] = Field(default_factory=list)
    character_developments: list[str] = Field(default_factory=list)
    npc_relationships: dict[str, str] = Field(default_factory=dict)
    important_choices: list[str] = Field(default_factory=list)
    location_history: list[str] = Field(default_factory=list)
    plot_points: list[str] = Field(default_factory=list)
    session_length: int = Field(default=0, ge=0)


# -----------------------------------------------------------------------------
# Operation results
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionResult:
    """Outcome of a player-facing operation. Rejections are not exceptions."""
    success: bool
    message: str


@dataclass(frozen=True)
class DamageResult:
    current_health: int
    is_dead: bool
