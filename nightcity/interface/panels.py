"""
Night City - Panel Rendering
Status, inventory and map displays for the CLI
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..state.saves import format_playtime
from ..state.schema import DangerLevel, ItemRarity

if TYPE_CHECKING:
    from ..state.manager import GameStateManager
    from ..state.saves import SaveSlotInfo
    from ..systems.inventory import Inventory
    from ..systems.travel import CityMap
    from ..tools.story_parser import StoryUpdates


def render_status_panel(manager: GameStateManager) -> Panel:
    """
    Status bar showing:
    - Name, level and role
    - Health bar
    - Eddies and street cred
    - Current location
    """
    background = manager.character.get_background()
    stats = manager.character.get_stats()
    location = manager.city_map.get_current_location()

    parts = [
        f"[bold cyan]{escape(background.name)}[/bold cyan]",
        f"[dim]Lv {stats.level} {background.role.value.replace('_', ' ')}[/dim]",
        f"HP {create_health_bar(stats.health, stats.max_health)} {stats.health}/{stats.max_health}",
        f"[yellow]{stats.eddies} €$[/yellow]",
        f"Cred: {stats.cred_rating}",
        f"[magenta]{escape(location.name)}[/magenta]",
    ]

    return Panel(
        Text.from_markup(" │ ".join(parts)),
        style="on #001100",
        border_style="blue",
        padding=(0, 1)
    )


def render_inventory_table(inventory: Inventory) -> Panel:
    """Filled slots with quantity, weight and equip marker."""
    table = Table(expand=True, show_edge=False, header_style="bold")
    table.add_column("Item")
    table.add_column("Type", style="dim")
    table.add_column("Qty", justify="right")
    table.add_column("Wt", justify="right")
    table.add_column("", width=2)

    for slot in inventory.get_inventory():
        if slot.item is None:
            continue
        color = get_rarity_color(slot.item.rarity)
        table.add_row(
            f"[{color}]{escape(slot.item.name)}[/{color}]",
            slot.item.type.value,
            str(slot.quantity),
            f"{slot.item.weight * slot.quantity:g}",
            "[green]E[/green]" if inventory.is_equipped(slot.item.id) else "",
        )

    footer = (
        f"{inventory.get_current_capacity()}/{inventory.max_slots} slots │ "
        f"{inventory.get_total_weight():g}/{inventory.max_weight:g} kg │ "
        f"{inventory.get_total_value()} €$"
    )
    return Panel(
        table,
        title="[bold]INVENTORY[/bold]",
        title_align="left",
        subtitle=f"[dim]{footer}[/dim]",
        border_style="blue",
        padding=(0, 1)
    )


def render_map_panel(city_map: CityMap) -> Panel:
    """Current location, where you can go from here, and active markers."""
    current = city_map.get_current_location()

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="left", width=24)
    table.add_column(justify="left", width=16)
    table.add_column(justify="left")

    for location in city_map.get_connected_locations():
        color = get_danger_color(location.danger_level)
        table.add_row(
            f"[cyan]{location.name}[/cyan]",
            location.district.value.replace("_", " ").title(),
            f"[{color}]{location.danger_level.value}[/{color}]",
        )

    markers = city_map.get_markers_for_location(current.id)
    lines = [
        f"[bold]{escape(current.name)}[/bold] [dim]({current.district.value.replace('_', ' ').title()})[/dim]",
        escape(current.description),
    ]
    if markers:
        lines.append("")
        lines += [f"[yellow]◆[/yellow] {marker.title}" for marker in markers]

    body = Table.grid()
    body.add_row(Text.from_markup("\n".join(lines)))
    body.add_row(Text(""))
    body.add_row(table)

    return Panel(
        body,
        title="[bold]MAP[/bold]",
        title_align="left",
        border_style="blue",
        padding=(0, 1)
    )


def render_slots_table(slots: list[SaveSlotInfo]) -> Table:
    table = Table(header_style="bold")
    table.add_column("Slot", justify="right")
    table.add_column("Character")
    table.add_column("Level", justify="right")
    table.add_column("Location")
    table.add_column("Played", justify="right")

    for info in slots:
        if not info.exists:
            table.add_row(str(info.slot), "[dim]empty[/dim]", "", "", "")
        elif info.corrupted or info.metadata is None:
            table.add_row(str(info.slot), "[red]Unknown (Corrupted)[/red]", "", "", "")
        else:
            meta = info.metadata
            table.add_row(
                str(info.slot),
                escape(meta.character_name),
                str(meta.character_level),
                escape(meta.current_location),
                format_playtime(meta.playtime),
            )
    return table


def render_updates(updates: StoryUpdates) -> Text:
    """One dim line summarizing what a turn changed."""
    parts = []
    if updates.experience_gained:
        parts.append(f"[cyan]+{updates.experience_gained} XP[/cyan]")
    if updates.damage_taken:
        parts.append(f"[red]-{updates.damage_taken} HP[/red]")
    if updates.health_restored:
        parts.append(f"[green]+{updates.health_restored} HP[/green]")
    if updates.eddies_gained:
        parts.append(f"[yellow]+{updates.eddies_gained} €$[/yellow]")
    if updates.eddies_spent:
        parts.append(f"[yellow]-{updates.eddies_spent} €$[/yellow]")
    if updates.cred_delta:
        parts.append(f"Cred {updates.cred_delta:+d}")
    parts += [f"[green]+ {escape(item)}[/green]" for item in updates.items_found]
    parts += [f"[red]- {escape(item)}[/red]" for item in updates.items_lost]
    if updates.new_location:
        parts.append(f"[magenta]→ {escape(updates.new_location)}[/magenta]")
    parts += [f"[dim]{trigger.value}[/dim]" for trigger in updates.triggers]

    if not parts:
        return Text("no changes", style="dim")
    return Text.from_markup(" │ ".join(parts))


# --- Helper Functions ---

def create_health_bar(health: int, max_health: int, width: int = 10) -> str:
    """Visual bar for current health."""
    ratio = health / max_health if max_health else 0
    filled_count = max(0, min(width, round(ratio * width)))

    filled = "▰" * filled_count
    empty = "▱" * (width - filled_count)

    if ratio > 0.6:
        color = "green"
    elif ratio > 0.3:
        color = "yellow"
    else:
        color = "red"

    return f"[{color}]{filled}{empty}[/{color}]"


def get_rarity_color(rarity: ItemRarity) -> str:
    """Color coding for item rarity"""
    mapping = {
        ItemRarity.COMMON: "white",
        ItemRarity.UNCOMMON: "green",
        ItemRarity.RARE: "blue",
        ItemRarity.EPIC: "magenta",
        ItemRarity.LEGENDARY: "yellow",
    }
    return mapping.get(rarity, "white")


def get_danger_color(danger: DangerLevel) -> str:
    """Color coding for location danger"""
    mapping = {
        DangerLevel.SAFE: "green",
        DangerLevel.LOW: "bright_green",
        DangerLevel.MODERATE: "yellow",
        DangerLevel.HIGH: "red",
        DangerLevel.EXTREME: "bold red",
        DangerLevel.RESTRICTED: "dim",
    }
    return mapping.get(danger, "white")
