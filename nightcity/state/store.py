"""
Save slot storage abstraction.

Separates where save files live from what goes in them, so the save
service can be tested without touching disk. Stores deal in opaque
JSON strings keyed by slot name ("slot_1" ... "slot_5", "autosave").
"""

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class SaveSlotStore(Protocol):
    """
    Abstract storage interface for save slots.

    Implementations:
    - JsonSaveStore: One file per slot (production)
    - MemorySaveStore: In-memory storage (testing)
    """

    def write(self, key: str, data: str) -> None:
        """Persist a save under `key`, replacing any previous one."""
        ...

    def read(self, key: str) -> str | None:
        """Return the save stored under `key`, or None if there is none."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a save. Returns True if deleted."""
        ...

    def exists(self, key: str) -> bool:
        """Check if a save exists."""
        ...

    def keys(self) -> list[str]:
        """All keys currently holding a save."""
        ...


class JsonSaveStore:
    """
    File-based save storage.

    Features:
    - One `<key>.json` file per slot
    - Previous save kept as `<key>.json.bak`
    """

    def __init__(self, saves_dir: Path | str = "saves"):
        self.saves_dir = Path(saves_dir)
        self.saves_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.saves_dir / f"{key}.json"

    def write(self, key: str, data: str) -> None:
        """Write the save, backing up whatever it replaces."""
        save_file = self._path(key)

        if save_file.exists():
            backup = save_file.with_suffix(".json.bak")
            backup.write_text(save_file.read_text())

        save_file.write_text(data)
        logger.debug(f"Wrote {save_file}")

    def read(self, key: str) -> str | None:
        save_file = self._path(key)
        if not save_file.exists():
            return None
        try:
            return save_file.read_text()
        except OSError as e:
            logger.warning(f"Could not read {save_file}: {e}")
            return None

    def delete(self, key: str) -> bool:
        """Delete the save file. The backup stays."""
        save_file = self._path(key)
        if save_file.exists():
            save_file.unlink()
            return True
        return False

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def keys(self) -> list[str]:
        # Dotfiles (the config) share the directory but are not saves
        return sorted(f.stem for f in self.saves_dir.glob("*.json") if not f.name.startswith("."))


class MemorySaveStore:
    """
    In-memory save storage for testing.

    No file I/O - all data lives in memory.
    """

    def __init__(self):
        self.saves: dict[str, str] = {}

    def write(self, key: str, data: str) -> None:
        self.saves[key] = data

    def read(self, key: str) -> str | None:
        return self.saves.get(key)

    def delete(self, key: str) -> bool:
        if key in self.saves:
            del self.saves[key]
            return True
        return False

    def exists(self, key: str) -> bool:
        return key in self.saves

    def keys(self) -> list[str]:
        return sorted(self.saves)

    def clear(self) -> None:
        """Clear all saves (test utility)."""
        self.saves.clear()
