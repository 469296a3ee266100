"""Game rule constants and temple upgrade definitions."""

from dataclasses import dataclass

from app.schemas.game_engine import UpgradeKind

BASE_MOVES_PER_TURN = 3
OWNER_STARTING_SOLDIERS = 5
NEUTRAL_STARTING_SOLDIERS = 2
STARTING_RESOURCES = 0

STANDARD_MAX_TURNS = 10
UNLIMITED_TURNS = 999

MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Armada variant
SHIP_COST = 10
STARTING_SHIPS = 10
ARMADA_TRAVEL_TURNS = 1

# Combat: a kill lands on a draw strictly greater than KILL_THRESHOLD
DIE_SIDES = 6
KILL_THRESHOLD = 3

MAX_RECENT_BATTLE_REPLAYS = 10

SOLDIER_BASE_COST = 8

# Fixed palette indexed by slot, never user-chosen
PLAYER_COLORS = ["#9d9", "#f88", "#ffe680", "#d9d"]


@dataclass(frozen=True)
class UpgradeDefinition:
    kind: UpgradeKind
    name: str
    costs: tuple[int, ...] = ()
    levels: tuple[int, ...] = ()


TEMPLE_UPGRADES: dict[UpgradeKind, UpgradeDefinition] = {
    UpgradeKind.WATER: UpgradeDefinition(UpgradeKind.WATER, "Water", (15, 25), (20, 40)),
    UpgradeKind.FIRE: UpgradeDefinition(UpgradeKind.FIRE, "Fire", (20, 30), (1, 2)),
    UpgradeKind.AIR: UpgradeDefinition(UpgradeKind.AIR, "Air", (25, 35), (1, 2)),
    UpgradeKind.EARTH: UpgradeDefinition(UpgradeKind.EARTH, "Earth", (30, 45), (1, 2)),
}


def player_color(slot_index: int) -> str:
    return PLAYER_COLORS[slot_index % len(PLAYER_COLORS)]


def soldier_cost(num_bought: int) -> int:
    """Cost of the next soldier, rising with each purchase this turn."""
    return SOLDIER_BASE_COST + num_bought
