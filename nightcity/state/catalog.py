"""
Static game data: perks, origin/role bonuses, backstory hooks,
specializations, starting gear and district lore.

Tables keyed by an enum cover every member of that enum; the test suite
checks this so adding a Role or Origin without its row fails loudly.
"""

from dataclasses import dataclass, field

from .schema import (
    DangerLevel,
    District,
    Item,
    ItemEffects,
    ItemRarity,
    ItemStats,
    ItemType,
    Origin,
    Perk,
    PerkEffect,
    Role,
    StatRequirement,
)


@dataclass(frozen=True)
class StatBonus:
    """Additive bonus applied once when an origin or role is chosen."""
    attributes: dict[str, int] = field(default_factory=dict)
    skills: dict[str, int] = field(default_factory=dict)


ORIGIN_BONUSES: dict[Origin, StatBonus] = {
    Origin.CORPO: StatBonus(attributes={"intelligence": 1, "cool": 1}),
    Origin.STREET_KID: StatBonus(attributes={"reflexes": 1, "cool": 1}),
    Origin.NOMAD: StatBonus(attributes={"technical": 1, "body": 1}),
}

ROLE_BONUSES: dict[Role, StatBonus] = {
    Role.SOLO: StatBonus(skills={"handguns": 1, "athletics": 1}),
    Role.NETRUNNER: StatBonus(skills={"breach": 1, "quickhacking": 1}),
    Role.TECHIE: StatBonus(skills={"engineering": 1, "crafting": 1}),
    Role.ROCKERBOY: StatBonus(attributes={"cool": 1}),
    Role.FIXER: StatBonus(attributes={"cool": 1}),
    Role.NOMAD: StatBonus(skills={"athletics": 1}),
    Role.MEDIA: StatBonus(attributes={"intelligence": 1}),
    Role.MEDTECH: StatBonus(attributes={"technical": 1}),
    Role.EXEC: StatBonus(attributes={"intelligence": 1}),
}

ORIGIN_BACKSTORY_HOOKS: dict[Origin, list[str]] = {
    Origin.CORPO: [
        "Former employer seeking revenge for perceived betrayal",
        "Knowledge of corporate secrets that could be leveraged or dangerous to know",
        "Access to high-level contacts who still owe favors",
        "Specialized corporate training in uncommon skills",
    ],
    Origin.STREET_KID: [
        "Old gang connections that can help or hinder",
        "Knowledge of the city's underground networks and hidden places",
        "Reputation among street-level fixers and merchants",
        "Unresolved rivalries from the past",
    ],
    Origin.NOMAD: [
        "Family ties to a nomad clan that can be called upon",
        "Unique perspective as both insider and outsider",
        "Mechanical knowledge not common in the city",
        "Outstanding debts or promises to the clan",
    ],
}

ROLE_SPECIALIZATIONS: dict[Role, list[str]] = {
    Role.SOLO: [
        "Close-Quarters Combat", "Ranged Specialist",
        "Tactical Expert", "Stealth Operative",
    ],
    Role.NETRUNNER: [
        "Security Specialist", "Combat Hacker",
        "Information Broker", "System Architect",
    ],
    Role.TECHIE: [
        "Weapons Tech", "Cyberware Specialist",
        "Vehicle Expert", "Drone Commander",
    ],
    Role.ROCKERBOY: [
        "Political Activist", "Media Darling",
        "Underground Icon", "Corporate Sellout",
    ],
    Role.FIXER: [
        "Arms Dealer", "Information Broker",
        "Smuggler", "Talent Scout",
    ],
    Role.NOMAD: [
        "Scout", "Vehicle Expert",
        "Family Diplomat", "Resource Specialist",
    ],
    Role.MEDIA: [
        "Investigative Journalist", "Propagandist",
        "Documentary Maker", "Influencer",
    ],
    Role.MEDTECH: [
        "Combat Medic", "Cyberpsychosis Specialist",
        "Pharmaceutical Expert", "Trauma Surgeon",
    ],
    Role.EXEC: [
        "Corporate Spy", "Resource Manager",
        "Team Leader", "Financial Expert",
    ],
}


def default_perks() -> dict[str, Perk]:
    """Fresh perk catalog, none unlocked or learned."""
    perks = [
        Perk(
            id="regeneration",
            name="Regeneration",
            description="Slowly regenerate health over time",
            attribute="body",
            attribute_requirement=StatRequirement(stat="body", level=5),
            effects=[PerkEffect(
                type="passive", target="health_regen", value=0.5,
                description="Regenerate 0.5 health per second",
            )],
        ),
        Perk(
            id="enhanced_memory",
            name="Enhanced Memory",
            description="Increased experience gain",
            attribute="intelligence",
            attribute_requirement=StatRequirement(stat="intelligence", level=5),
            effects=[PerkEffect(
                type="stat_bonus", target="experience_gain", value=10,
                description="+10% experience gain",
            )],
        ),
        Perk(
            id="lightning_reflexes",
            name="Lightning Reflexes",
            description="Faster reaction time in combat",
            attribute="reflexes",
            attribute_requirement=StatRequirement(stat="reflexes", level=6),
            effects=[PerkEffect(
                type="stat_bonus", target="attack_speed", value=15,
                description="+15% attack speed",
            )],
        ),
        Perk(
            id="tech_specialist",
            name="Tech Specialist",
            description="Better at crafting and upgrading items",
            attribute="technical",
            skill_requirement=StatRequirement(stat="crafting", level=3),
            effects=[PerkEffect(
                type="skill_bonus", target="crafting", value=2,
                description="+2 crafting skill",
            )],
        ),
        Perk(
            id="ice_cold",
            name="Ice Cold",
            description="Remain calm under pressure",
            attribute="cool",
            attribute_requirement=StatRequirement(stat="cool", level=7),
            effects=[PerkEffect(
                type="stat_bonus", target="stealth_rating", value=3,
                description="+3 stealth rating",
            )],
        ),
    ]
    return {perk.id: perk for perk in perks}


STARTING_ITEMS: list[tuple[Item, int]] = [
    (Item(
        id="starter_pistol",
        name="Militech M-10AF Lexington",
        type=ItemType.WEAPON,
        rarity=ItemRarity.COMMON,
        description="Standard issue pistol. Reliable and easy to maintain.",
        value=750,
        weight=2.5,
        stats=ItemStats(damage=45),
        equippable=True,
    ), 1),
    (Item(
        id="basic_jacket",
        name="Reinforced Leather Jacket",
        type=ItemType.ARMOR,
        rarity=ItemRarity.COMMON,
        description="Basic protection with style.",
        value=300,
        weight=3.0,
        stats=ItemStats(defense=15),
        equippable=True,
    ), 1),
    (Item(
        id="health_booster",
        name="MaxDoc Mk.I",
        type=ItemType.CONSUMABLE,
        rarity=ItemRarity.COMMON,
        description="Restores health instantly.",
        value=50,
        weight=0.1,
        effects=ItemEffects(heal=50),
        usable=True,
    ), 3),
    (Item(
        id="eddies",
        name="Eurodollars",
        type=ItemType.MISC,
        rarity=ItemRarity.COMMON,
        description="Night City currency.",
        value=1,
        weight=0.0,
    ), 1500),
]


@dataclass(frozen=True)
class StoryItemTemplate:
    """Item shape inferred from keywords in a narrative phrase."""
    keywords: tuple[str, ...]
    type: ItemType
    value: int
    weight: float
    rarity: ItemRarity = ItemRarity.COMMON
    usable: bool = False
    equippable: bool = False
    heal: int | None = None


# First template whose keyword appears in the phrase wins
STORY_ITEM_TEMPLATES: list[StoryItemTemplate] = [
    StoryItemTemplate(("data shard", "shard", "chip", "datachip"), ItemType.DATA, 100, 0.1),
    StoryItemTemplate(("credstick",), ItemType.MISC, 250, 0.1, ItemRarity.UNCOMMON),
    StoryItemTemplate(("stimpack", "medkit", "booster", "inhaler"), ItemType.CONSUMABLE, 75, 0.2,
                      usable=True, heal=25),
    StoryItemTemplate(("food", "drink", "synth", "noodle", "consumable"), ItemType.CONSUMABLE, 15, 0.3,
                      usable=True, heal=10),
    StoryItemTemplate(("ammo", "rounds", "magazine"), ItemType.MISC, 20, 0.5),
    StoryItemTemplate(("cyberdeck", "implant", "cyberware"), ItemType.CYBERWARE, 1200, 1.0,
                      ItemRarity.RARE, equippable=True),
    StoryItemTemplate(("pistol", "rifle", "shotgun", "gun", "weapon", "blade", "katana", "knife"),
                      ItemType.WEAPON, 500, 3.0, equippable=True),
    StoryItemTemplate(("armor", "jacket", "vest", "coat"), ItemType.ARMOR, 300, 3.0, equippable=True),
    StoryItemTemplate(("tool", "component", "wrench", "toolkit"), ItemType.TOOL, 60, 1.0),
]


@dataclass(frozen=True)
class DistrictProfile:
    name: str
    description: str
    danger_level: DangerLevel


DISTRICT_PROFILES: dict[District, DistrictProfile] = {
    District.WATSON: DistrictProfile(
        "Watson", "Industrial district with immigrant communities", DangerLevel.MODERATE,
    ),
    District.CITY_CENTER: DistrictProfile(
        "City Center", "Corporate and commercial heart of Night City", DangerLevel.LOW,
    ),
    District.WESTBROOK: DistrictProfile(
        "Westbrook", "Entertainment and nightlife district", DangerLevel.MODERATE,
    ),
    District.HEYWOOD: DistrictProfile(
        "Heywood", "Suburban residential and business district", DangerLevel.LOW,
    ),
    District.SANTO_DOMINGO: DistrictProfile(
        "Santo Domingo", "Industrial manufacturing district", DangerLevel.HIGH,
    ),
    District.PACIFICA: DistrictProfile(
        "Pacifica", "Abandoned combat zone", DangerLevel.EXTREME,
    ),
    District.BADLANDS: DistrictProfile(
        "The Badlands", "Wasteland beyond the city limits", DangerLevel.EXTREME,
    ),
    District.CORPO_PLAZA: DistrictProfile(
        "Corpo Plaza", "Corporate headquarters and government buildings", DangerLevel.RESTRICTED,
    ),
}
