"""
Per-saves-directory settings.

The file is a dotfile inside the saves directory, so moving a saves
folder carries its settings along. Anything unreadable falls back to
DEFAULT_CONFIG; the game never refuses to start over a bad config.
"""

import json
import logging
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".nightcity_config.json"


class Config(TypedDict, total=False):
    max_save_slots: int
    inventory_slots: int
    inventory_max_weight: float
    autosave: bool  # refresh the autosave after each replayed turn
    rng_seed: int | None  # None draws a fresh seed per run
    log_level: str


DEFAULT_CONFIG: Config = {
    "max_save_slots": 5,
    "inventory_slots": 20,
    "inventory_max_weight": 100.0,
    "autosave": True,
    "rng_seed": None,
    "log_level": "INFO",
}


def get_config_path(saves_dir: Path | str = "saves") -> Path:
    return Path(saves_dir) / CONFIG_FILENAME


def _with_defaults(overrides: dict) -> Config:
    """DEFAULT_CONFIG updated with the known keys of `overrides`."""
    config = Config(**DEFAULT_CONFIG)
    for key, value in overrides.items():
        if key in DEFAULT_CONFIG:
            config[key] = value
        else:
            logger.debug(f"Ignoring unknown config key {key!r}")
    return config


def load_config(saves_dir: Path | str = "saves") -> Config:
    """
    Read settings for a saves directory.

    Returns:
        A fresh dict; callers may mutate it freely
    """
    path = get_config_path(saves_dir)
    if not path.is_file():
        return _with_defaults({})

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Unreadable config {path}, using defaults: {e}")
        return _with_defaults({})

    if not isinstance(raw, dict):
        logger.warning(f"Config {path} is not a JSON object, using defaults")
        return _with_defaults({})
    return _with_defaults(raw)


def save_config(config: Config, saves_dir: Path | str = "saves") -> bool:
    """Write settings, creating the saves directory if needed. False on I/O failure."""
    path = get_config_path(saves_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not write config {path}: {e}")
        return False
    return True


def _update(saves_dir: Path | str, **changes) -> bool:
    config = load_config(saves_dir)
    config.update(changes)
    return save_config(config, saves_dir)


def set_autosave(enabled: bool, saves_dir: Path | str = "saves") -> bool:
    return _update(saves_dir, autosave=enabled)


def set_rng_seed(seed: int | None, saves_dir: Path | str = "saves") -> bool:
    return _update(saves_dir, rng_seed=seed)
