"""
Character progression for V.

Owns attributes, skills, vitals, eddies, street cred, perks and the
progression history. Every mutation goes through this class so the
derived numbers (max health, damage, defense, hacking power, stealth,
carry capacity) and perk eligibility stay in step with the sheet.

Rejected operations return an ActionResult with success=False and a
player-readable message; nothing here raises for bad input from play.
"""

from __future__ import annotations

import logging
import random
from math import floor
from typing import TYPE_CHECKING

from ..state.catalog import (
    ORIGIN_BACKSTORY_HOOKS,
    ORIGIN_BONUSES,
    ROLE_BONUSES,
    ROLE_SPECIALIZATIONS,
    StatBonus,
    default_perks,
)
from ..state.schema import (
    ATTRIBUTE_MAX,
    ATTRIBUTE_MIN,
    ATTRIBUTE_NAMES,
    SKILL_MAX,
    SKILL_MIN,
    SKILL_NAMES,
    ActionResult,
    Appearance,
    CharacterAttributes,
    CharacterBackground,
    CharacterSkills,
    CharacterState,
    CharacterStats,
    DamageResult,
    Origin,
    Perk,
    ProgressionEvent,
    ProgressionEventType,
    Role,
)
from ..state.event_bus import EventType

if TYPE_CHECKING:
    from ..state.event_bus import EventBus

logger = logging.getLogger(__name__)


BASE_EXPERIENCE = 1000
EXPERIENCE_GROWTH = 1.15
ATTRIBUTE_POINTS_PER_LEVEL = 1
SKILL_POINTS_PER_LEVEL = 2
EDDIES_PER_LEVEL = 50
HOOKS_PER_CHARACTER = 2
CRED_RATING_MIN = 0
CRED_RATING_MAX = 100


def experience_for_level(level: int) -> int:
    """Experience needed to advance past `level`."""
    return floor(BASE_EXPERIENCE * EXPERIENCE_GROWTH ** (level - 1))


def _perk_bonus(state: CharacterState, target: str) -> float:
    """Sum of learned perk effect values aimed at `target`."""
    return sum(
        effect.value
        for perk in state.perks.values() if perk.learned
        for effect in perk.effects if effect.target == target
    )


def _meets_requirements(perk: Perk, state: CharacterState) -> bool:
    if perk.attribute_requirement is not None:
        req = perk.attribute_requirement
        if getattr(state.attributes, req.stat) < req.level:
            return False
    if perk.skill_requirement is not None:
        req = perk.skill_requirement
        if getattr(state.skills, req.stat) < req.level:
            return False
    return True


def refresh_derived(state: CharacterState) -> None:
    """Recompute derived stats and perk eligibility in place."""
    attrs = state.attributes
    skills = state.skills
    stats = state.stats

    stats.max_health = 100 + (attrs.body - 3) * 20
    stats.max_stamina = 100 + (attrs.body - 3) * 15
    stats.damage = 10 + attrs.body + skills.assault + skills.handguns
    stats.defense = 5 + attrs.body + skills.athletics
    stats.hacking_power = attrs.intelligence + skills.breach + skills.quickhacking
    stats.stealth_rating = attrs.cool + skills.stealth + int(_perk_bonus(state, "stealth_rating"))
    stats.carry_capacity = 50 + attrs.body * 10

    stats.health = min(stats.health, stats.max_health)
    stats.stamina = min(stats.stamina, stats.max_stamina)

    # Eligibility never revokes a perk that was already learned
    for perk in state.perks.values():
        perk.unlocked = perk.learned or _meets_requirements(perk, state)


class CharacterProgression:
    """
    Character sheet and progression rules.

    Read accessors hand back deep copies; mutate only through methods.
    """

    def __init__(
        self,
        bus: EventBus | None = None,
        rng: random.Random | None = None,
    ):
        self._bus = bus
        self._rng = rng or random.Random()
        self._state = self._new_state()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _new_state(self) -> CharacterState:
        state = CharacterState(perks=default_perks())
        state.background.background_hooks = self._pick_hooks(state.background.origin)
        refresh_derived(state)
        return state

    def _pick_hooks(self, origin: Origin) -> list[str]:
        return self._rng.sample(ORIGIN_BACKSTORY_HOOKS[origin], HOOKS_PER_CHARACTER)

    def _emit(self, event_type: EventType, **data) -> None:
        if self._bus is not None:
            self._bus.emit(event_type, **data)

    def _record(
        self,
        event_type: ProgressionEventType,
        title: str,
        description: str,
        rewards: dict[str, int] | None = None,
    ) -> ProgressionEvent:
        event = ProgressionEvent(
            type=event_type,
            title=title,
            description=description,
            rewards=rewards,
        )
        self._state.progression_history.append(event)
        return event

    def _apply_bonus(self, bonus: StatBonus) -> dict[str, int]:
        """Add a bonus, clamped to the stat caps. Returns what was really added."""
        applied = {}
        for group, amounts, low, high in (
            (self._state.attributes, bonus.attributes, ATTRIBUTE_MIN, ATTRIBUTE_MAX),
            (self._state.skills, bonus.skills, SKILL_MIN, SKILL_MAX),
        ):
            for name, amount in amounts.items():
                current = getattr(group, name)
                value = max(low, min(high, current + amount))
                setattr(group, name, value)
                if value != current:
                    applied[name] = value - current
        return applied

    def _revert_bonus(self, applied: dict[str, int]) -> None:
        for name, amount in applied.items():
            if name in ATTRIBUTE_NAMES:
                value = getattr(self._state.attributes, name) - amount
                setattr(self._state.attributes, name, max(ATTRIBUTE_MIN, min(ATTRIBUTE_MAX, value)))
            else:
                value = getattr(self._state.skills, name) - amount
                setattr(self._state.skills, name, max(SKILL_MIN, min(SKILL_MAX, value)))

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def set_origin(self, origin: Origin | str) -> None:
        """
        Choose V's origin.

        Applies the origin's attribute bonus and rolls fresh backstory
        hooks. Choosing again first takes back the previous bonus.
        """
        origin = Origin(origin)
        background = self._state.background
        if background.origin_selected:
            self._revert_bonus(background.origin_bonus_applied)

        background.origin = origin
        background.origin_selected = True
        background.origin_bonus_applied = self._apply_bonus(ORIGIN_BONUSES[origin])
        background.background_hooks = self._pick_hooks(origin)
        refresh_derived(self._state)
        logger.debug(f"Origin set to {origin.value}")

    def set_role(self, role: Role | str) -> None:
        """Choose V's role. Clears any specialization from the old role."""
        role = Role(role)
        background = self._state.background
        if background.role_selected:
            self._revert_bonus(background.role_bonus_applied)

        background.role = role
        background.role_selected = True
        background.specialization = None
        background.role_bonus_applied = self._apply_bonus(ROLE_BONUSES[role])
        refresh_derived(self._state)
        logger.debug(f"Role set to {role.value}")

    def get_available_specializations(self) -> list[str]:
        return list(ROLE_SPECIALIZATIONS[self._state.background.role])

    def set_specialization(self, specialization: str) -> ActionResult:
        background = self._state.background
        if specialization not in ROLE_SPECIALIZATIONS[background.role]:
            return ActionResult(False, f"{specialization} is not a {background.role.value} specialization")
        if background.specialization is not None:
            return ActionResult(False, "Specialization already chosen")
        background.specialization = specialization
        return ActionResult(True, f"Specialized as {specialization}")

    def set_name(self, name: str) -> None:
        self._state.background.name = (name or "").strip() or "V"

    def set_appearance(self, **changes: str) -> None:
        """Update any of the Appearance fields by keyword."""
        current = self._state.background.appearance.model_dump()
        current.update(changes)
        self._state.background.appearance = Appearance.model_validate(current)

    def set_background_story(self, story: str) -> None:
        self._state.background.background_story = story

    # -------------------------------------------------------------------------
    # Point spending
    # -------------------------------------------------------------------------

    def increase_attribute(self, attribute: str) -> ActionResult:
        if attribute not in ATTRIBUTE_NAMES:
            return ActionResult(False, f"Unknown attribute: {attribute}")
        stats = self._state.stats
        if stats.attribute_points <= 0:
            return ActionResult(False, "No attribute points available")
        current = getattr(self._state.attributes, attribute)
        if current >= ATTRIBUTE_MAX:
            return ActionResult(False, "Attribute already at maximum level")

        setattr(self._state.attributes, attribute, current + 1)
        stats.attribute_points -= 1
        self._record(
            ProgressionEventType.ATTRIBUTE_INCREASE,
            "Attribute Increased",
            f"{attribute.capitalize()} increased to {current + 1}",
        )
        refresh_derived(self._state)
        self._emit(EventType.ATTRIBUTE_INCREASED, attribute=attribute, value=current + 1)
        return ActionResult(True, f"{attribute} increased to {current + 1}")

    def increase_skill(self, skill: str) -> ActionResult:
        if skill not in SKILL_NAMES:
            return ActionResult(False, f"Unknown skill: {skill}")
        stats = self._state.stats
        if stats.skill_points <= 0:
            return ActionResult(False, "No skill points available")
        current = getattr(self._state.skills, skill)
        if current >= SKILL_MAX:
            return ActionResult(False, "Skill already at maximum level")

        setattr(self._state.skills, skill, current + 1)
        stats.skill_points -= 1
        self._record(
            ProgressionEventType.SKILL_INCREASE,
            "Skill Improved",
            f"{skill.replace('_', ' ').title()} increased to {current + 1}",
        )
        refresh_derived(self._state)
        self._emit(EventType.SKILL_INCREASED, skill=skill, value=current + 1)
        return ActionResult(True, f"{skill} increased to {current + 1}")

    def learn_perk(self, perk_id: str) -> ActionResult:
        perk = self._state.perks.get(perk_id)
        if perk is None:
            return ActionResult(False, "Perk not found")
        if not perk.unlocked:
            return ActionResult(False, "Perk requirements not met")
        if perk.learned:
            return ActionResult(False, "Perk already learned")
        if self._state.stats.skill_points < perk.cost:
            return ActionResult(False, "Insufficient skill points")

        perk.learned = True
        self._state.stats.skill_points -= perk.cost
        self._record(
            ProgressionEventType.PERK_UNLOCKED,
            "Perk Learned",
            f"Learned {perk.name}: {perk.description}",
        )
        refresh_derived(self._state)
        logger.info(f"Learned perk {perk.id}")
        self._emit(EventType.PERK_LEARNED, perk_id=perk.id)
        return ActionResult(True, f"Learned perk: {perk.name}")

    # -------------------------------------------------------------------------
    # Experience
    # -------------------------------------------------------------------------

    def add_experience(self, amount: int) -> list[ProgressionEvent]:
        """
        Grant experience and resolve every level-up it pays for.

        Learned experience_gain perks scale the amount first. Each level
        grants attribute and skill points, eddies, and a full heal.

        Returns:
            One LEVEL_UP event per level gained, oldest first
        """
        if amount <= 0:
            return []

        stats = self._state.stats
        multiplier = 1 + _perk_bonus(self._state, "experience_gain") / 100
        stats.experience += floor(amount * multiplier)

        events = []
        while stats.experience >= stats.experience_to_next:
            stats.experience -= stats.experience_to_next
            stats.level += 1
            stats.attribute_points += ATTRIBUTE_POINTS_PER_LEVEL
            stats.skill_points += SKILL_POINTS_PER_LEVEL
            stats.experience_to_next = experience_for_level(stats.level)

            reward = stats.level * EDDIES_PER_LEVEL
            stats.eddies += reward
            stats.health = stats.max_health
            stats.stamina = stats.max_stamina

            events.append(self._record(
                ProgressionEventType.LEVEL_UP,
                "Level Up!",
                f"You've reached level {stats.level}!",
                rewards={"experience": 0, "eddies": reward},
            ))
            logger.info(f"Level up: now level {stats.level}")
            self._emit(EventType.LEVEL_UP, level=stats.level, eddies=reward)

        return [event.model_copy(deep=True) for event in events]

    # -------------------------------------------------------------------------
    # Vitals and resources
    # -------------------------------------------------------------------------

    def take_damage(self, amount: int) -> DamageResult:
        stats = self._state.stats
        stats.health = max(0, stats.health - max(0, amount))
        is_dead = stats.health == 0
        if is_dead:
            logger.info("V flatlined")
            self._emit(EventType.PLAYER_FLATLINED)
        return DamageResult(current_health=stats.health, is_dead=is_dead)

    def heal(self, amount: int) -> int:
        """Restore health up to the maximum. Returns the amount actually healed."""
        stats = self._state.stats
        before = stats.health
        stats.health = min(stats.max_health, stats.health + max(0, amount))
        return stats.health - before

    def use_stamina(self, amount: int) -> bool:
        stats = self._state.stats
        if stats.stamina < amount:
            return False
        stats.stamina -= amount
        return True

    def restore_stamina(self, amount: int) -> None:
        stats = self._state.stats
        stats.stamina = min(stats.max_stamina, stats.stamina + max(0, amount))

    def add_eddies(self, amount: int) -> None:
        self._state.stats.eddies += amount

    def spend_eddies(self, amount: int) -> bool:
        stats = self._state.stats
        if amount < 0 or stats.eddies < amount:
            return False
        stats.eddies -= amount
        return True

    def add_cred_rating(self, amount: int) -> None:
        stats = self._state.stats
        stats.cred_rating = max(CRED_RATING_MIN, min(CRED_RATING_MAX, stats.cred_rating + amount))

    def add_humanity_loss(self, amount: int) -> None:
        stats = self._state.stats
        stats.humanity_loss = max(0, min(stats.max_humanity, stats.humanity_loss + amount))

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    def get_attributes(self) -> CharacterAttributes:
        return self._state.attributes.model_copy(deep=True)

    def get_skills(self) -> CharacterSkills:
        return self._state.skills.model_copy(deep=True)

    def get_stats(self) -> CharacterStats:
        return self._state.stats.model_copy(deep=True)

    def get_background(self) -> CharacterBackground:
        return self._state.background.model_copy(deep=True)

    def get_perks(self) -> dict[str, Perk]:
        return {pid: perk.model_copy(deep=True) for pid, perk in self._state.perks.items()}

    def get_available_perks(self) -> list[Perk]:
        """Perks V qualifies for but has not learned."""
        return [
            perk.model_copy(deep=True)
            for perk in self._state.perks.values()
            if perk.unlocked and not perk.learned
        ]

    def get_learned_perks(self) -> list[Perk]:
        return [
            perk.model_copy(deep=True)
            for perk in self._state.perks.values()
            if perk.learned
        ]

    def get_progression_history(self) -> list[ProgressionEvent]:
        return [event.model_copy(deep=True) for event in self._state.progression_history]

    def get_character_summary(self) -> dict:
        """Flat snapshot for status lines and prompts."""
        background = self._state.background
        stats = self._state.stats
        return {
            "name": background.name,
            "origin": background.origin.value,
            "role": background.role.value,
            "specialization": background.specialization,
            "level": stats.level,
            "experience": stats.experience,
            "experience_to_next": stats.experience_to_next,
            "health": stats.health,
            "max_health": stats.max_health,
            "eddies": stats.eddies,
            "cred_rating": stats.cred_rating,
            "attribute_points": stats.attribute_points,
            "skill_points": stats.skill_points,
            "learned_perks": [p.name for p in self._state.perks.values() if p.learned],
        }

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> str:
        return self._state.model_dump_json()

    @staticmethod
    def parse(data: str) -> CharacterState:
        """
        Validate serialized character state without touching any store.

        Raises:
            ValueError: If the data is not a valid character save
        """
        state = CharacterState.model_validate_json(data)
        # Saves predating a catalog perk still get it, unlearned
        for perk_id, perk in default_perks().items():
            state.perks.setdefault(perk_id, perk)
        refresh_derived(state)
        return state

    def restore(self, state: CharacterState) -> None:
        """Swap in already-validated state."""
        self._state = state

    def load(self, data: str) -> bool:
        """Replace the sheet with a save. On failure nothing changes."""
        try:
            state = self.parse(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Rejected character save: {e}")
            return False
        self.restore(state)
        return True

    def reset(self) -> None:
        self._state = self._new_state()
