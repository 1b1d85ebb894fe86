"""Night City: keeps game state in step with the story."""

__version__ = "0.1.0"
