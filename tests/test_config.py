"""Tests for user configuration."""

from nightcity.interface.config import (
    DEFAULT_CONFIG,
    get_config_path,
    load_config,
    save_config,
    set_autosave,
    set_rng_seed,
)


class TestConfig:
    def test_defaults_when_missing(self, tmp_path):
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_defaults_are_copies(self, tmp_path):
        config = load_config(tmp_path)
        config["autosave"] = False
        assert DEFAULT_CONFIG["autosave"] is True

    def test_round_trip(self, tmp_path):
        config = load_config(tmp_path)
        config["inventory_slots"] = 30
        assert save_config(config, tmp_path) is True
        assert load_config(tmp_path)["inventory_slots"] == 30

    def test_missing_keys_filled(self, tmp_path):
        get_config_path(tmp_path).write_text('{"log_level": "DEBUG"}')
        config = load_config(tmp_path)
        assert config["log_level"] == "DEBUG"
        assert config["max_save_slots"] == 5

    def test_unknown_keys_dropped(self, tmp_path):
        get_config_path(tmp_path).write_text('{"theme": "dark"}')
        assert "theme" not in load_config(tmp_path)

    def test_corrupt_file(self, tmp_path):
        get_config_path(tmp_path).write_text("{oops")
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_non_object(self, tmp_path):
        get_config_path(tmp_path).write_text("[1, 2]")
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_setters(self, tmp_path):
        set_autosave(False, tmp_path)
        set_rng_seed(2077, tmp_path)
        config = load_config(tmp_path)
        assert config["autosave"] is False
        assert config["rng_seed"] == 2077

    def test_save_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "saves"
        assert save_config(DEFAULT_CONFIG.copy(), target) is True
        assert get_config_path(target).exists()
