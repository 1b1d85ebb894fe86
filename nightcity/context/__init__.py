"""Context handed back to the narrator: memory and the character sheet."""

from .memory import NarrativeMemoryStore
from .character_info import build_character_info

__all__ = ["NarrativeMemoryStore", "build_character_info"]
