"""
Short fights against a recognizable enemy.

The narrative names an opponent ("a Tyger Claws ganger", "corpo
security", "a cyberpsycho"); identify_enemy() maps that to a stat
block, parse_action() reads what V is trying to do, and resolve_fight()
plays out a few exchanges. resolve_fight() only computes the outcome;
GameStateManager.resolve_combat() applies it to the stores.

Usage:
    enemy = identify_enemy("Two Maelstrom gangers block the alley.")
    action = parse_action("I shoot the closest one")
    outcome = resolve_fight(stats, skills, attributes, enemy, action, rng)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from math import floor

from ..state.schema import CharacterAttributes, CharacterSkills, CharacterStats

logger = logging.getLogger(__name__)


class EnemyType(str, Enum):
    GANG_MEMBER = "gang_member"
    CORPO_GUARD = "corpo_guard"
    CYBER_PSYCHO = "cyber_psycho"
    SECURITY_BOT = "security_bot"
    BOSS = "boss"


class CombatDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"


class Stance(str, Enum):
    ATTACK = "attack"
    DEFEND = "defend"
    FLEE = "flee"
    QUICKHACK = "quickhack"
    STEALTH = "stealth"


@dataclass(frozen=True)
class Enemy:
    name: str
    type: EnemyType
    difficulty: CombatDifficulty
    health: int
    damage: int
    defense: int
    loot: tuple[str, ...]  # story phrases, added like found items
    experience_reward: int


@dataclass(frozen=True)
class CombatAction:
    stance: Stance
    description: str
    effectiveness: float = 1.0


@dataclass
class CombatOutcome:
    """What one fight did. Nothing here has been applied yet."""
    enemy: Enemy
    action: CombatAction
    victory: bool = False
    fled: bool = False
    rounds: int = 0
    damage_dealt: int = 0
    damage_taken: int = 0
    experience_gained: int = 0
    eddies_gained: int = 0
    loot: list[str] = field(default_factory=list)
    consequences: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        if self.victory:
            return f"Defeated {self.enemy.name}"
        if self.fled:
            return f"Escaped from {self.enemy.name}"
        return f"Fought {self.enemy.name} to a standstill"


# -----------------------------------------------------------------------------
# Tables
# -----------------------------------------------------------------------------

ENEMIES: dict[EnemyType, Enemy] = {
    EnemyType.GANG_MEMBER: Enemy(
        "Street Gang Member", EnemyType.GANG_MEMBER, CombatDifficulty.EASY,
        health=40, damage=12, defense=2,
        loot=("credstick", "street pistol"), experience_reward=15,
    ),
    EnemyType.CORPO_GUARD: Enemy(
        "Corporate Security", EnemyType.CORPO_GUARD, CombatDifficulty.MEDIUM,
        health=70, damage=18, defense=5,
        loot=("corpo rifle", "security badge", "credstick"), experience_reward=25,
    ),
    EnemyType.CYBER_PSYCHO: Enemy(
        "Cyber Psycho", EnemyType.CYBER_PSYCHO, CombatDifficulty.HARD,
        health=120, damage=30, defense=8,
        loot=("salvaged cyberware", "encrypted data shard", "military grade rifle"),
        experience_reward=50,
    ),
    EnemyType.SECURITY_BOT: Enemy(
        "Security Bot", EnemyType.SECURITY_BOT, CombatDifficulty.MEDIUM,
        health=60, damage=20, defense=10,
        loot=("tech components", "data shard"), experience_reward=30,
    ),
    EnemyType.BOSS: Enemy(
        "Gang Boss", EnemyType.BOSS, CombatDifficulty.EXTREME,
        health=200, damage=45, defense=12,
        loot=("legendary pistol", "boss data shard", "fat credstick"), experience_reward=100,
    ),
}

# Checked in order when no enemy is named outright
ENEMY_CUES: list[tuple[EnemyType, tuple[str, ...]]] = [
    (EnemyType.GANG_MEMBER, ("gang", "street")),
    (EnemyType.CORPO_GUARD, ("corpo", "security")),
    (EnemyType.CYBER_PSYCHO, ("psycho", "cyberware malfunction")),
    (EnemyType.SECURITY_BOT, ("bot", "automated")),
    (EnemyType.BOSS, ("boss", "leader")),
]

# First matching keyword wins
ACTION_CUES: list[tuple[tuple[str, ...], CombatAction]] = [
    (("flee", "run", "escape"), CombatAction(Stance.FLEE, "attempt to flee", 0.8)),
    (("defend", "block", "guard"), CombatAction(Stance.DEFEND, "defensive stance", 0.7)),
    (("hack",), CombatAction(Stance.QUICKHACK, "quickhack", 1.2)),
    (("stealth", "sneak"), CombatAction(Stance.STEALTH, "stealth attack", 1.5)),
    (("sword", "blade", "katana"), CombatAction(Stance.ATTACK, "melee attack", 1.1)),
    (("gun", "shoot"), CombatAction(Stance.ATTACK, "ranged attack", 1.0)),
]
DEFAULT_ACTION = CombatAction(Stance.ATTACK, "standard attack", 1.0)

VICTORY_EDDIES = {
    CombatDifficulty.EASY: 50,
    CombatDifficulty.MEDIUM: 100,
    CombatDifficulty.HARD: 200,
    CombatDifficulty.EXTREME: 400,
}

FLEE_MODIFIERS = {
    CombatDifficulty.EASY: 1.2,
    CombatDifficulty.MEDIUM: 1.0,
    CombatDifficulty.HARD: 0.8,
    CombatDifficulty.EXTREME: 0.6,
}

COMBAT_ROUNDS = 3
LOOT_CHANCE = 0.6
ESCAPE_EXPERIENCE = 5
STANDOFF_EXPERIENCE_SHARE = 0.3
DEFEND_DAMAGE_SHARE = 0.7
DEFEND_INCOMING_SHARE = 0.6
QUICKHACK_INCOMING_SHARE = 0.5


# -----------------------------------------------------------------------------
# Reading the narrative
# -----------------------------------------------------------------------------

def identify_enemy(text: str) -> Enemy:
    """The enemy the text describes; a street ganger when nothing fits."""
    lowered = text.lower()
    for enemy in ENEMIES.values():
        if enemy.name.lower() in lowered or enemy.type.value.replace("_", " ") in lowered:
            return enemy
    for enemy_type, cues in ENEMY_CUES:
        if any(cue in lowered for cue in cues):
            return ENEMIES[enemy_type]
    return ENEMIES[EnemyType.GANG_MEMBER]


def parse_action(text: str) -> CombatAction:
    lowered = text.lower()
    for cues, action in ACTION_CUES:
        if any(cue in lowered for cue in cues):
            return action
    return DEFAULT_ACTION


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------

def _vary(amount: float, rng: random.Random) -> int:
    return floor(amount * rng.uniform(0.8, 1.2))


def _incoming(enemy: Enemy, defense: int, rng: random.Random) -> int:
    return _vary(max(1, enemy.damage - defense // 2), rng)


def _outgoing(
    stats: CharacterStats,
    skills: CharacterSkills,
    action: CombatAction,
    rng: random.Random,
) -> int:
    if action.stance == Stance.DEFEND:
        return floor(stats.damage * DEFEND_DAMAGE_SHARE)
    if action.stance == Stance.QUICKHACK:
        return _vary(stats.damage + stats.hacking_power, rng)
    weapon_skill = skills.handguns + skills.assault + skills.blades
    return _vary(stats.damage * action.effectiveness + weapon_skill // 2, rng)


def _consequences(outcome: CombatOutcome, flatlined: bool) -> list[str]:
    notes = []
    if flatlined:
        notes.append("Critical injury sustained - immediate medical attention required")
    elif outcome.damage_taken > 30:
        notes.append("Severe injuries sustained")
    elif outcome.damage_taken > 15:
        notes.append("Moderate injuries sustained")

    if outcome.victory:
        notes.extend(["Combat concluded successfully", "Area secured"])
    elif outcome.fled:
        notes.append("Tactical retreat executed")
    else:
        notes.append("Combat situation unresolved")
    return notes


def resolve_fight(
    stats: CharacterStats,
    skills: CharacterSkills,
    attributes: CharacterAttributes,
    enemy: Enemy,
    action: CombatAction,
    rng: random.Random,
) -> CombatOutcome:
    """
    Play out one fight from V's current numbers.

    Fleeing is a single roll; a failed escape costs one enemy hit and
    ends the fight. Otherwise V and the enemy trade blows for up to
    COMBAT_ROUNDS exchanges, stopping early when either side drops.
    A stealth opener is never countered.

    Returns:
        CombatOutcome with damage, rewards and loot still to be applied
    """
    outcome = CombatOutcome(enemy=enemy, action=action)

    if action.stance == Stance.FLEE:
        escape_chance = (
            (attributes.reflexes + skills.athletics + skills.stealth + attributes.cool) / 20
            * FLEE_MODIFIERS[enemy.difficulty]
        )
        outcome.rounds = 1
        if rng.random() < escape_chance:
            outcome.fled = True
            outcome.experience_gained = ESCAPE_EXPERIENCE
            outcome.consequences = ["Successfully escaped from combat"]
            return outcome
        outcome.damage_taken = _incoming(enemy, stats.defense, rng)
    else:
        for exchange in range(COMBAT_ROUNDS):
            outcome.rounds = exchange + 1
            outcome.damage_dealt += _outgoing(stats, skills, action, rng)
            if outcome.damage_dealt >= enemy.health:
                outcome.victory = True
                break
            if action.stance == Stance.STEALTH and exchange == 0:
                continue
            hit = _incoming(enemy, stats.defense, rng)
            if action.stance == Stance.DEFEND:
                hit = floor(hit * DEFEND_INCOMING_SHARE)
            elif action.stance == Stance.QUICKHACK:
                hit = floor(hit * QUICKHACK_INCOMING_SHARE)
            outcome.damage_taken += hit
            if outcome.damage_taken >= stats.health:
                break

    if outcome.victory:
        outcome.experience_gained = enemy.experience_reward
        outcome.eddies_gained = VICTORY_EDDIES[enemy.difficulty]
        outcome.loot = [phrase for phrase in enemy.loot if rng.random() < LOOT_CHANCE]
    else:
        outcome.experience_gained = floor(enemy.experience_reward * STANDOFF_EXPERIENCE_SHARE)

    outcome.consequences = _consequences(outcome, outcome.damage_taken >= stats.health)
    logger.debug(
        f"{action.description} vs {enemy.name}: dealt {outcome.damage_dealt}, "
        f"took {outcome.damage_taken} over {outcome.rounds} rounds"
    )
    return outcome
