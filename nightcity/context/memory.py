"""
Narrative memory - the continuity layer fed back to the narrator.

This is NOT the transcript. It keeps short, bounded lists of what
mattered:
- Key events: fights, discoveries, deaths
- Character developments: how V is changing
- Important choices: what V agreed to or refused
- Location history: where V has been
- Plot points: threads the story is pulling on
- NPC relationships: who V knows and how

Each list has a soft cap. Going past it drops the oldest entries down
to a smaller floor, so trimming happens in bursts rather than per turn.
"""

import logging

from ..state.schema import NarrativeMemory

logger = logging.getLogger(__name__)


# field -> (soft cap, size kept after trimming)
MEMORY_LIMITS: dict[str, tuple[int, int]] = {
    "key_events": (20, 15),
    "character_developments": (10, 8),
    "important_choices": (15, 10),
    "location_history": (25, 20),
    "plot_points": (10, 8),
}

EMPTY_RECAP = "Your adventure in Night City has just begun..."
RECAP_HEADER = "=== YOUR NIGHT CITY STORY SO FAR ==="


class NarrativeMemoryStore:
    """Bounded narrative memory with prompt and recap rendering."""

    def __init__(self):
        self._memory = NarrativeMemory()

    def _append(self, field_name: str, entry: str) -> None:
        entry = entry.strip()
        if not entry:
            return
        entries: list[str] = getattr(self._memory, field_name)
        entries.append(entry)
        cap, keep = MEMORY_LIMITS[field_name]
        if len(entries) > cap:
            setattr(self._memory, field_name, entries[-keep:])
            logger.debug(f"Trimmed {field_name} to {keep} entries")

    def add_key_event(self, event: str) -> None:
        self._append("key_events", event)

    def add_character_development(self, development: str) -> None:
        self._append("character_developments", development)

    def add_important_choice(self, choice: str) -> None:
        self._append("important_choices", choice)

    def add_location_visit(self, location: str) -> None:
        self._append("location_history", location)

    def add_plot_point(self, plot_point: str) -> None:
        self._append("plot_points", plot_point)

    def update_npc_relationship(self, npc_name: str, relationship: str) -> None:
        self._memory.npc_relationships[npc_name.strip()] = relationship

    def record_turn(self) -> None:
        """Count one narrative turn processed."""
        self._memory.session_length += 1

    def get_memory(self) -> NarrativeMemory:
        return self._memory.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def generate_context_summary(self) -> str:
        """
        Compact continuity block for the next narrative prompt.

        Empty until at least one key event has been recorded.
        """
        memory = self._memory
        if not memory.key_events:
            return ""

        lines = ["", "=== NARRATIVE CONTEXT ==="]
        lines.append(f"Recent Events: {', '.join(memory.key_events[-5:])}")
        if memory.important_choices:
            lines.append(f"Key Decisions: {', '.join(memory.important_choices[-3:])}")
        if memory.npc_relationships:
            npcs = list(memory.npc_relationships.items())[-5:]
            lines.append("Known NPCs: " + ", ".join(f"{name} ({rel})" for name, rel in npcs))
        if memory.plot_points:
            lines.append(f"Plot Developments: {', '.join(memory.plot_points[-3:])}")
        return "\n".join(lines)

    def get_story_recap(self) -> str:
        """Full stored history, formatted for the player."""
        memory = self._memory
        if not memory.key_events:
            return EMPTY_RECAP

        sections = [RECAP_HEADER, _section("SIGNIFICANT EVENTS", memory.key_events)]
        if memory.important_choices:
            sections.append(_section("MAJOR DECISIONS", memory.important_choices))
        if memory.npc_relationships:
            sections.append(_section(
                "PEOPLE YOU'VE MET",
                [f"{name} - {rel}" for name, rel in memory.npc_relationships.items()],
            ))
        if memory.plot_points:
            sections.append(_section("STORY DEVELOPMENTS", memory.plot_points))

        return "\n\n".join(sections)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> str:
        return self._memory.model_dump_json()

    @staticmethod
    def parse(data: str) -> NarrativeMemory:
        """
        Validate serialized memory.

        Raises:
            ValueError: If the data is not a valid memory save
        """
        return NarrativeMemory.model_validate_json(data)

    def restore(self, memory: NarrativeMemory) -> None:
        self._memory = memory

    def load(self, data: str) -> bool:
        try:
            memory = self.parse(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Rejected narrative memory save: {e}")
            return False
        self.restore(memory)
        return True

    def reset(self) -> None:
        self._memory = NarrativeMemory()


def _section(title: str, entries: list[str]) -> str:
    return "\n".join([f"{title}:"] + [f"• {entry}" for entry in entries])
