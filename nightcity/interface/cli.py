"""
Command-line interface for Night City.

Replays narrative turns through the game state manager and inspects
save slots. There is no narrator here: turns come from a text file,
one turn per blank-line-separated block.

Usage:
    nightcity replay story.txt --slot 2
    nightcity status --slot 2
    nightcity slots
    nightcity recap --slot 2
"""

import argparse
import logging
import random
import sys
from pathlib import Path

from rich.console import Console

from ..context.memory import NarrativeMemoryStore
from ..state.event_bus import EventBus
from ..state.manager import GameStateManager
from ..state.saves import SaveGameService
from ..state.schema import Origin, Role
from ..state.store import JsonSaveStore
from ..systems.inventory import Inventory
from ..systems.progression import CharacterProgression
from ..systems.travel import CityMap
from .config import Config, load_config
from .panels import (
    render_inventory_table,
    render_map_panel,
    render_slots_table,
    render_status_panel,
    render_updates,
)

logger = logging.getLogger(__name__)

console = Console()


def split_turns(text: str) -> list[str]:
    """Blank-line-separated blocks, stripped, empties dropped."""
    blocks = []
    current: list[str] = []
    for line in text.splitlines():
        if line.strip():
            current.append(line)
        elif current:
            blocks.append("\n".join(current).strip())
            current = []
    if current:
        blocks.append("\n".join(current).strip())
    return blocks


def build_game(config: Config, saves_dir: Path, seed: int | None = None):
    """Wire a manager and save service from config."""
    if seed is None:
        seed = config.get("rng_seed")
    rng = random.Random(seed)
    bus = EventBus()

    manager = GameStateManager(
        character=CharacterProgression(bus=bus, rng=rng),
        inventory=Inventory(
            max_slots=config.get("inventory_slots", 20),
            max_weight=config.get("inventory_max_weight", 100.0),
            bus=bus,
        ),
        city_map=CityMap(bus=bus),
        memory=NarrativeMemoryStore(),
        bus=bus,
        rng=rng,
    )
    service = SaveGameService(
        manager,
        JsonSaveStore(saves_dir),
        max_slots=config.get("max_save_slots", 5),
        autosave=config.get("autosave", True),
    )
    return manager, service


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_replay(args, manager: GameStateManager, service: SaveGameService) -> int:
    path = Path(args.file)
    if not path.exists():
        console.print(f"[red]No such file: {path}[/red]")
        return 1

    if args.resume:
        result = service.load(args.slot)
        if not result.success:
            console.print(f"[red]{result.message}[/red]")
            return 1
    elif args.name:
        manager.new_character(args.name, args.origin, args.role)

    turns = split_turns(path.read_text(encoding="utf-8"))
    for number, turn in enumerate(turns, 1):
        updates = manager.update_from_story(turn)
        console.print(f"[dim]turn {number}:[/dim]", render_updates(updates))
        service.auto_save()

    result = service.save(args.slot)
    console.print(render_status_panel(manager))
    console.print(result.message, style="green" if result.success else "red")
    return 0 if result.success else 1


def cmd_status(args, manager: GameStateManager, service: SaveGameService) -> int:
    result = service.load(args.slot)
    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        return 1
    console.print(render_status_panel(manager))
    console.print(render_inventory_table(manager.inventory))
    console.print(render_map_panel(manager.city_map))
    return 0


def cmd_slots(args, manager: GameStateManager, service: SaveGameService) -> int:
    console.print(render_slots_table(service.get_save_slots()))
    if service.has_auto_save():
        console.print("[dim]Auto-save available[/dim]")
    return 0


def cmd_recap(args, manager: GameStateManager, service: SaveGameService) -> int:
    result = service.load(args.slot)
    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        return 1
    console.print(manager.memory.get_story_recap())
    return 0


COMMANDS = {
    "replay": cmd_replay,
    "status": cmd_status,
    "slots": cmd_slots,
    "recap": cmd_recap,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Night City - story-driven game state")
    parser.add_argument(
        "--saves-dir",
        default="saves",
        help="Directory holding save slots and config (default: saves)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed for trigger effects (overrides config)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser("replay", help="Feed narrative turns from a file")
    replay.add_argument("file", help="Text file, one turn per blank-line-separated block")
    replay.add_argument("--slot", type=int, default=1, help="Slot to save into (default: 1)")
    replay.add_argument("--resume", action="store_true", help="Continue from the slot's save")
    replay.add_argument("--name", help="Character name for a new game")
    replay.add_argument("--origin", default="street_kid", choices=[o.value for o in Origin],
                        help="Origin for a new game")
    replay.add_argument("--role", default="solo", choices=[r.value for r in Role],
                        help="Role for a new game")

    for name, help_text in (
        ("status", "Show character, inventory and map for a slot"),
        ("recap", "Show the story so far for a slot"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--slot", type=int, default=1, help="Save slot (default: 1)")

    subparsers.add_parser("slots", help="List save slots")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    saves_dir = Path(args.saves_dir)
    config = load_config(saves_dir)

    level = "DEBUG" if args.verbose else config.get("log_level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    manager, service = build_game(config, saves_dir, seed=args.seed)
    return COMMANDS[args.command](args, manager, service)


if __name__ == "__main__":
    sys.exit(main())
