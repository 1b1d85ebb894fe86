"""Narrative text parsing."""

from .story_parser import StoryUpdates, TriggerKind, extract

__all__ = ["StoryUpdates", "TriggerKind", "extract"]
