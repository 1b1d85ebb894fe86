"""
Save slots on top of the game state blob.

The manager knows how to turn a game into one JSON string and back.
This service decides where those strings go: five numbered slots, a
separate autosave, and export/import for moving saves between machines.
Each stored save wraps the blob with metadata for a load menu.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from pydantic import BaseModel, Field, ValidationError

from .manager import SAVE_VERSION
from .schema import ActionResult
from .store import MemorySaveStore, SaveSlotStore

if TYPE_CHECKING:
    from .manager import GameStateManager

logger = logging.getLogger(__name__)


MAX_SAVE_SLOTS = 5
QUICK_SAVE_SLOT = 1
AUTOSAVE_SLOT = 0
AUTOSAVE_KEY = "autosave"


# -----------------------------------------------------------------------------
# Save file models
# -----------------------------------------------------------------------------

class SaveMetadata(BaseModel):
    """What a load menu shows without loading the game."""
    character_name: str = "V"
    character_level: int = 1
    current_location: str = "Unknown"
    playtime: float = Field(default=0.0, ge=0, description="Seconds played")
    save_slot: int = 0


class SaveGameData(BaseModel):
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    game_state: str
    metadata: SaveMetadata


class SaveSlotInfo(BaseModel):
    slot: int
    exists: bool = False
    corrupted: bool = False
    timestamp: datetime | None = None
    metadata: SaveMetadata | None = None


def format_playtime(seconds: float) -> str:
    """'2h 5m' or '14m'."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    return f"{hours}h {minutes}m" if hours else f"{minutes}m"


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------

class SaveGameService:
    """
    Numbered save slots, quick save and autosave for one game.

    Usage:
        service = SaveGameService(manager, JsonSaveStore("saves"))
        service.save(2)
        service.load(2)
    """

    def __init__(
        self,
        manager: GameStateManager,
        store: SaveSlotStore | None = None,
        max_slots: int = MAX_SAVE_SLOTS,
        autosave: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.manager = manager
        self.store = store if store is not None else MemorySaveStore()
        self.max_slots = max_slots
        self.autosave_enabled = autosave
        self._clock = clock
        self._started = clock()

    @staticmethod
    def _key(slot: int) -> str:
        return f"slot_{slot}"

    def _check_slot(self, slot: int) -> ActionResult | None:
        if not 1 <= slot <= self.max_slots:
            return ActionResult(False, f"Save slot must be between 1 and {self.max_slots}")
        return None

    # -------------------------------------------------------------------------
    # Playtime
    # -------------------------------------------------------------------------

    def get_playtime(self) -> float:
        """Seconds played, carried across loads."""
        return self._clock() - self._started

    def _resume_playtime(self, playtime: float) -> None:
        self._started = self._clock() - playtime

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def _snapshot(self, slot: int) -> SaveGameData:
        manager = self.manager
        return SaveGameData(
            version=SAVE_VERSION,
            game_state=manager.save_game_state(),
            metadata=SaveMetadata(
                character_name=manager.character.get_background().name,
                character_level=manager.character.get_stats().level,
                current_location=manager.city_map.get_current_location().name,
                playtime=self.get_playtime(),
                save_slot=slot,
            ),
        )

    def _read(self, key: str) -> SaveGameData | None:
        """
        Stored save for `key`, or None if there isn't one.

        Raises:
            ValueError: If the stored save is unreadable
        """
        raw = self.store.read(key)
        if raw is None:
            return None
        return SaveGameData.model_validate_json(raw)

    def save(self, slot: int = QUICK_SAVE_SLOT, label: str | None = None) -> ActionResult:
        """Save the current game to a numbered slot."""
        error = self._check_slot(slot)
        if error is not None:
            return error

        data = self._snapshot(slot)
        try:
            self.store.write(self._key(slot), data.model_dump_json(indent=2))
        except OSError as e:
            logger.error(f"Save to slot {slot} failed: {e}")
            return ActionResult(False, "Failed to save game. Please try again.")

        logger.info(f"Saved {data.metadata.character_name} to slot {slot}")
        suffix = f' as "{label}"' if label else ""
        return ActionResult(True, f"Game saved to slot {slot}{suffix}")

    def load(self, slot: int) -> ActionResult:
        """Replace the current game with a numbered slot's save."""
        error = self._check_slot(slot)
        if error is not None:
            return error

        try:
            data = self._read(self._key(slot))
        except ValueError as e:
            logger.warning(f"Slot {slot} is corrupted: {e}")
            return ActionResult(False, "Failed to load game. Save file may be corrupted.")
        if data is None:
            return ActionResult(False, f"No saved game found in slot {slot}")

        if data.version != SAVE_VERSION:
            return ActionResult(
                False,
                f"Save file version {data.version} is not compatible "
                f"with current version {SAVE_VERSION}",
            )
        if not self.manager.load_game_state(data.game_state):
            return ActionResult(False, "Failed to load game state. Save file may be corrupted.")

        self._resume_playtime(data.metadata.playtime)
        meta = data.metadata
        return ActionResult(
            True,
            f"Game loaded from slot {slot} ({meta.character_name}, Level {meta.character_level})",
        )

    def delete_save(self, slot: int) -> ActionResult:
        error = self._check_slot(slot)
        if error is not None:
            return error
        if not self.store.delete(self._key(slot)):
            return ActionResult(False, f"No saved game found in slot {slot}")
        logger.info(f"Deleted save in slot {slot}")
        return ActionResult(True, f"Save deleted from slot {slot}")

    def get_save_slots(self) -> list[SaveSlotInfo]:
        """One entry per numbered slot. Unreadable saves are flagged, not skipped."""
        slots = []
        for slot in range(1, self.max_slots + 1):
            try:
                data = self._read(self._key(slot))
            except ValueError:
                slots.append(SaveSlotInfo(
                    slot=slot,
                    exists=True,
                    corrupted=True,
                    metadata=SaveMetadata(character_name="Unknown", character_level=0,
                                          save_slot=slot),
                ))
                continue

            if data is None:
                slots.append(SaveSlotInfo(slot=slot))
            else:
                slots.append(SaveSlotInfo(
                    slot=slot, exists=True, timestamp=data.timestamp, metadata=data.metadata,
                ))
        return slots

    def quick_save(self) -> ActionResult:
        return self.save(QUICK_SAVE_SLOT, "Quick Save")

    def quick_load(self) -> ActionResult:
        return self.load(QUICK_SAVE_SLOT)

    # -------------------------------------------------------------------------
    # Autosave
    # -------------------------------------------------------------------------

    def auto_save(self) -> ActionResult:
        """Write the autosave. A no-op success when autosave is switched off."""
        if not self.autosave_enabled:
            return ActionResult(True, "Auto-save disabled")
        data = self._snapshot(AUTOSAVE_SLOT)
        try:
            self.store.write(AUTOSAVE_KEY, data.model_dump_json(indent=2))
        except OSError as e:
            logger.error(f"Auto-save failed: {e}")
            return ActionResult(False, "Auto-save failed")
        return ActionResult(True, "Auto-saved")

    def has_auto_save(self) -> bool:
        return self.store.exists(AUTOSAVE_KEY)

    def load_auto_save(self) -> ActionResult:
        try:
            data = self._read(AUTOSAVE_KEY)
        except ValueError as e:
            logger.warning(f"Autosave is corrupted: {e}")
            return ActionResult(False, "Failed to load auto-save")
        if data is None:
            return ActionResult(False, "No auto-save found")
        if data.version != SAVE_VERSION or not self.manager.load_game_state(data.game_state):
            return ActionResult(False, "Failed to load auto-save")

        self._resume_playtime(data.metadata.playtime)
        return ActionResult(True, "Auto-save loaded")

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_save(self, slot: int) -> str | None:
        """The slot's save as portable JSON, or None if the slot is empty or unreadable."""
        if self._check_slot(slot) is not None:
            return None
        try:
            data = self._read(self._key(slot))
        except ValueError as e:
            logger.warning(f"Cannot export slot {slot}: {e}")
            return None
        return data.model_dump_json(indent=2) if data is not None else None

    def import_save(self, data: str, slot: int) -> ActionResult:
        """
        Store an exported save in a slot without loading it.

        The wrapped game state must be one this game could load.
        """
        error = self._check_slot(slot)
        if error is not None:
            return error
        try:
            save_data = SaveGameData.model_validate_json(data)
        except ValidationError as e:
            logger.warning(f"Rejected imported save: {e.error_count()} errors")
            return ActionResult(False, "Invalid save file format")
        if save_data.version != SAVE_VERSION or not self.manager.is_valid_game_state(save_data.game_state):
            return ActionResult(False, "Invalid save file format")

        save_data.metadata.save_slot = slot
        try:
            self.store.write(self._key(slot), save_data.model_dump_json(indent=2))
        except OSError as e:
            logger.error(f"Import into slot {slot} failed: {e}")
            return ActionResult(False, "Failed to import save. Please try again.")
        logger.info(f"Imported save into slot {slot}")
        return ActionResult(True, f"Save imported to slot {slot}")
