"""Tests for save slots and save storage."""

import json

import pytest

from nightcity.state.manager import SAVE_VERSION
from nightcity.state.saves import (
    AUTOSAVE_KEY,
    SaveGameData,
    SaveGameService,
    SaveMetadata,
    format_playtime,
)
from nightcity.state.store import JsonSaveStore, MemorySaveStore, SaveSlotStore


class TestSlots:
    """Numbered slot save and load."""

    def test_save(self, save_service, save_store):
        result = save_service.save(2)
        assert result.success is True
        assert result.message == "Game saved to slot 2"
        assert save_store.exists("slot_2")

    def test_save_with_label(self, save_service):
        assert save_service.save(1, "Before the heist").message == (
            'Game saved to slot 1 as "Before the heist"'
        )

    @pytest.mark.parametrize("slot", [0, 6, -1])
    def test_slot_range(self, save_service, slot):
        for result in (save_service.save(slot), save_service.load(slot), save_service.delete_save(slot)):
            assert result.success is False
            assert result.message == "Save slot must be between 1 and 5"

    def test_load_empty(self, save_service):
        assert save_service.load(3).message == "No saved game found in slot 3"

    def test_save_then_load(self, save_service, manager):
        """Loading a slot brings back the game as saved."""
        manager.new_character("Jackie", "nomad", "solo")
        manager.update_from_story("You gain 1200 experience.")
        save_service.save(2)

        manager.reset_game_state()
        result = save_service.load(2)

        assert result.success is True
        assert result.message == "Game loaded from slot 2 (Jackie, Level 2)"
        assert manager.character.get_background().name == "Jackie"

    def test_corrupted_slot(self, save_service, save_store, manager):
        """An unreadable slot fails to load and leaves the game alone."""
        manager.update_from_story("You gain 50 experience.")
        save_store.write("slot_2", "garbage")

        result = save_service.load(2)
        assert result.message == "Failed to load game. Save file may be corrupted."
        assert manager.character.get_stats().experience == 50

    def test_bad_game_state(self, save_service, save_store):
        """A well-formed wrapper around a broken game is rejected."""
        bad = SaveGameData(version=SAVE_VERSION, game_state="{}", metadata=SaveMetadata())
        save_store.write("slot_1", bad.model_dump_json())

        assert save_service.load(1).message == (
            "Failed to load game state. Save file may be corrupted."
        )

    def test_version_mismatch(self, save_service, save_store, manager):
        old = SaveGameData(
            version="0.9.0", game_state=manager.save_game_state(), metadata=SaveMetadata(),
        )
        save_store.write("slot_1", old.model_dump_json())

        assert save_service.load(1).message == (
            f"Save file version 0.9.0 is not compatible with current version {SAVE_VERSION}"
        )

    def test_delete(self, save_service):
        save_service.save(4)
        assert save_service.delete_save(4).message == "Save deleted from slot 4"
        assert save_service.delete_save(4).message == "No saved game found in slot 4"


class TestSlotListing:
    def test_one_entry_per_slot(self, save_service, manager):
        manager.travel_to("little_china")
        save_service.save(1)
        save_service.save(3)

        slots = save_service.get_save_slots()
        assert [s.slot for s in slots] == [1, 2, 3, 4, 5]
        assert [s.exists for s in slots] == [True, False, True, False, False]
        assert slots[0].metadata.current_location == "Little China"
        assert slots[2].metadata.save_slot == 3
        assert slots[1].metadata is None

    def test_corrupted_flagged(self, save_service, save_store):
        """Corrupt slots show up as Unknown, level 0."""
        save_store.write("slot_5", "{not json")
        info = save_service.get_save_slots()[4]

        assert info.exists is True
        assert info.corrupted is True
        assert info.metadata.character_name == "Unknown"
        assert info.metadata.character_level == 0

    def test_custom_slot_count(self, manager):
        service = SaveGameService(manager, max_slots=3)
        assert len(service.get_save_slots()) == 3
        assert service.save(4).message == "Save slot must be between 1 and 3"


class TestPlaytime:
    def test_recorded_in_metadata(self, save_service, save_store, clock):
        clock.advance(125)
        save_service.save(1)
        stored = json.loads(save_store.read("slot_1"))
        assert stored["metadata"]["playtime"] == 125

    def test_resumes_after_load(self, save_service, clock):
        """Playtime continues from the loaded save, not the session."""
        clock.advance(600)
        save_service.save(1)
        clock.advance(3000)

        save_service.load(1)
        assert save_service.get_playtime() == 600
        clock.advance(60)
        assert save_service.get_playtime() == 660

    @pytest.mark.parametrize("seconds,text", [(0, "0m"), (840, "14m"), (3900, "1h 5m")])
    def test_format(self, seconds, text):
        assert format_playtime(seconds) == text


class TestQuickAndAutoSave:
    def test_quick_save_load(self, save_service, manager):
        assert save_service.quick_save().message == 'Game saved to slot 1 as "Quick Save"'
        manager.update_from_story("You take 30 damage.")
        assert save_service.quick_load().success is True
        assert manager.character.get_stats().health == 100

    def test_auto_save(self, save_service, save_store, manager):
        """The autosave lives outside the numbered slots."""
        manager.travel_to("kabuki_market")
        assert save_service.auto_save().message == "Auto-saved"
        assert save_service.has_auto_save() is True

        stored = json.loads(save_store.read(AUTOSAVE_KEY))
        assert stored["metadata"]["save_slot"] == 0
        assert stored["metadata"]["current_location"] == "Kabuki Market"
        assert all(not s.exists for s in save_service.get_save_slots())

    def test_load_auto_save(self, save_service, manager):
        save_service.auto_save()
        manager.update_from_story("You gain 300 experience.")

        assert save_service.load_auto_save().message == "Auto-save loaded"
        assert manager.character.get_stats().experience == 0

    def test_no_auto_save(self, save_service):
        assert save_service.load_auto_save().message == "No auto-save found"

    def test_corrupt_auto_save(self, save_service, save_store):
        save_store.write(AUTOSAVE_KEY, "[]")
        assert save_service.load_auto_save().message == "Failed to load auto-save"

    def test_disabled(self, manager, save_store):
        service = SaveGameService(manager, save_store, autosave=False)
        result = service.auto_save()
        assert result.success is True
        assert result.message == "Auto-save disabled"
        assert service.has_auto_save() is False


class TestExportImport:
    def test_round_trip(self, save_service, manager):
        """An exported slot imports into another slot and loads."""
        manager.new_character("Panam", "nomad", "techie")
        save_service.save(1)

        exported = save_service.export_save(1)
        assert save_service.import_save(exported, 4).message == "Save imported to slot 4"

        info = save_service.get_save_slots()[3]
        assert info.metadata.save_slot == 4
        assert info.metadata.character_name == "Panam"
        assert save_service.load(4).success is True

    def test_export_empty(self, save_service):
        assert save_service.export_save(2) is None
        assert save_service.export_save(9) is None

    @pytest.mark.parametrize("data", ["", "nope", "{}", '{"version": "1.0.0"}'])
    def test_import_garbage(self, save_service, data):
        assert save_service.import_save(data, 1).message == "Invalid save file format"

    def test_import_unloadable_game(self, save_service, save_store):
        """The wrapped game must pass validation before it is stored."""
        bad = SaveGameData(version=SAVE_VERSION, game_state="{}", metadata=SaveMetadata())
        result = save_service.import_save(bad.model_dump_json(), 2)

        assert result.success is False
        assert not save_store.exists("slot_2")

    def test_import_write_failure(self, manager, save_service, clock):
        """A store that cannot write yields a failed result, not an exception."""
        class ReadOnlyStore(MemorySaveStore):
            def write(self, key, data):
                raise OSError("read-only file system")

        save_service.save(1)
        exported = save_service.export_save(1)
        service = SaveGameService(manager, ReadOnlyStore(), clock=clock)

        result = service.import_save(exported, 3)
        assert result.success is False
        assert result.message == "Failed to import save. Please try again."


class TestJsonSaveStore:
    """File-backed slots."""

    def test_protocol(self, tmp_path):
        assert isinstance(JsonSaveStore(tmp_path), SaveSlotStore)
        assert isinstance(MemorySaveStore(), SaveSlotStore)

    def test_write_read(self, tmp_path):
        store = JsonSaveStore(tmp_path / "saves")
        store.write("slot_1", '{"a": 1}')

        assert (tmp_path / "saves" / "slot_1.json").exists()
        assert store.read("slot_1") == '{"a": 1}'
        assert store.read("slot_2") is None

    def test_backup_on_overwrite(self, tmp_path):
        """The replaced save is kept as .json.bak."""
        store = JsonSaveStore(tmp_path)
        store.write("slot_1", "first")
        store.write("slot_1", "second")

        assert store.read("slot_1") == "second"
        assert (tmp_path / "slot_1.json.bak").read_text() == "first"

    def test_delete_keeps_backup(self, tmp_path):
        store = JsonSaveStore(tmp_path)
        store.write("slot_1", "first")
        store.write("slot_1", "second")

        assert store.delete("slot_1") is True
        assert store.delete("slot_1") is False
        assert store.exists("slot_1") is False
        assert (tmp_path / "slot_1.json.bak").exists()

    def test_keys_skip_backups_and_config(self, tmp_path):
        store = JsonSaveStore(tmp_path)
        store.write("slot_2", "x")
        store.write("slot_2", "y")
        store.write("autosave", "z")
        (tmp_path / ".nightcity_config.json").write_text("{}")

        assert store.keys() == ["autosave", "slot_2"]

    def test_service_on_disk(self, tmp_path, manager):
        """A save written to disk loads into a fresh service."""
        manager.update_from_story("You gain 40 experience.")
        SaveGameService(manager, JsonSaveStore(tmp_path)).save(3)

        manager.reset_game_state()
        result = SaveGameService(manager, JsonSaveStore(tmp_path)).load(3)
        assert result.success is True
        assert manager.character.get_stats().experience == 40
