"""
Character info block for narrative prompts.

The narrator never sees the stores; it sees this text, rebuilt from
them before every request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..systems.progression import CharacterProgression
    from ..systems.travel import CityMap
    from .memory import NarrativeMemoryStore


DEFAULT_BACKSTORY = "A solo making their way in Night City, looking for the next big score."

# (label, skill field) shown under Key Skills
KEY_SKILLS = [
    ("Athletics", "athletics"),
    ("Breach Protocol", "breach"),
    ("Quickhacking", "quickhacking"),
    ("Handguns", "handguns"),
    ("Stealth", "stealth"),
    ("Engineering", "engineering"),
]


def build_character_info(
    character: CharacterProgression,
    city_map: CityMap,
    memory: NarrativeMemoryStore,
) -> str:
    background = character.get_background()
    attributes = character.get_attributes()
    stats = character.get_stats()
    skills = character.get_skills()

    role = background.role.value.replace("_", " ").title()
    if background.specialization:
        role = f"{role} ({background.specialization})"

    lines = [
        f"Name: {background.name}",
        f"Level: {stats.level}",
        f"Origin: {background.origin.value.replace('_', ' ').title()}",
        f"Role: {role}",
        city_map.get_current_location_context(),
        "",
        f"Health: {stats.health}/{stats.max_health}",
        f"Eddies: {stats.eddies} €$",
        f"Street Cred: {stats.cred_rating}/100",
        "",
        "Attributes:",
    ]
    lines += [f"- {name.title()}: {value}" for name, value in attributes.model_dump().items()]
    lines += ["", "Key Skills:"]
    lines += [f"- {label}: {getattr(skills, field)}" for label, field in KEY_SKILLS]
    lines += ["", "Background Story:", background.background_story or DEFAULT_BACKSTORY]

    look = background.appearance
    appearance = [
        f"Gender: {look.gender}" if look.gender else "",
        f"Hair: {look.hair_style} {look.hair_color}".strip() if look.hair_style or look.hair_color else "",
        f"Eyes: {look.eye_color}" if look.eye_color else "",
        f"Face: {look.facial_features}" if look.facial_features else "",
        f"Clothing: {look.clothing}" if look.clothing else "",
        f"Distinguishing Marks: {look.distinguishing_marks}" if look.distinguishing_marks else "",
    ]
    appearance = [line for line in appearance if line]
    if appearance:
        lines += ["", "Appearance:"] + appearance

    lines += ["", "Origin Hooks:"] + background.background_hooks

    summary = memory.generate_context_summary()
    if summary:
        lines.append(summary)

    return "\n".join(lines)
