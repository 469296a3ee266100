from enum import Enum

from pydantic import BaseModel, Field


# Game record lifecycle
class GameStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


# Which ruleset drives forces and income
class GameVariant(str, Enum):
    CONQUEST = "conquest"
    ARMADA = "armada"


# Lobby slot assignment while a game is pending
class SlotType(str, Enum):
    OPEN = "open"
    HUMAN = "human"
    AI = "ai"
    OFF = "off"


class UpgradeKind(str, Enum):
    NONE = "none"
    SOLDIER = "soldier"
    WATER = "water"
    FIRE = "fire"
    AIR = "air"
    EARTH = "earth"
    REBUILD = "rebuild"


class CombatOutcome(str, Enum):
    ATTACKER_WINS = "attacker_wins"
    DEFENDER_WINS = "defender_wins"


class EndReason(str, Enum):
    ELIMINATION = "elimination"
    RESIGNATION = "resignation"
    TURN_LIMIT = "turn_limit"


# Data models for game entities
class Player(BaseModel):
    slot_index: int = Field(..., ge=0)
    name: str
    color: str
    is_ai: bool = False
    personality: str | None = None
    difficulty: str | None = None


class Region(BaseModel):
    """A map location: a region in conquest, a planet in armada."""

    index: int = Field(..., ge=0)
    name: str
    neighbors: list[int] = []
    production: int = Field(1, ge=0)


# Supplied by the map generator, which lives outside the engine
class MapLayout(BaseModel):
    regions: list[Region]
    temple_regions: list[int] = []
    home_regions: list[int] = Field(
        ..., description="Starting region for each slot, indexed by slot"
    )


class Soldier(BaseModel):
    id: int
    attacked_region: int | None = None  # Animation hint only


class Temple(BaseModel):
    region_index: int
    upgrade: UpgradeKind = UpgradeKind.NONE
    level: int = 0


class Armada(BaseModel):
    """A fleet in transit between two planets."""

    id: str
    owner_slot: int
    ships: int = Field(..., ge=1)
    source: int
    destination: int
    departure_turn: int
    arrival_turn: int


# Combat replay data for client animation
class CombatRound(BaseModel):
    attacker_losses: int
    defender_losses: int


class CombatResult(BaseModel):
    rounds: list[CombatRound]
    attackers_remaining: int
    defenders_remaining: int
    outcome: CombatOutcome


class BattleReplay(BaseModel):
    region: int
    attacker_slot: int
    defender_slot: int | None = None
    attackers: int
    defenders: int
    result: CombatResult


class EndResult(BaseModel):
    winner_slot: int | None = None
    is_draw: bool = False
    reason: EndReason


class GameState(BaseModel):
    """Authoritative game state for an active or completed game.

    Both variants share ownership, resources and turn counters. Conquest keeps
    soldiers and temples per region; armada keeps ship counts per planet and
    the fleets currently in transit. Fields for the other variant stay empty.
    """

    variant: GameVariant
    players: list[Player]
    regions: list[Region]
    rng_seed: int = 0
    battle_counter: int = 0
    max_turns: int

    turn_number: int = Field(1, ge=1)
    current_player_slot: int
    moves_remaining: int = Field(0, ge=0)

    owners_by_region: dict[int, int] = {}
    resource_by_player: dict[int, int] = {}
    eliminated_players: list[int] = []

    # Conquest
    garrisons_by_region: dict[int, list[Soldier]] = {}
    temples_by_region: dict[int, Temple] = {}
    next_soldier_id: int = 0

    # Armada
    ships_by_planet: dict[int, int] = {}
    armadas: list[Armada] = []

    # Per-turn counters, reset at end of turn
    num_bought_soldiers: int = 0
    conquered_regions: list[int] = []

    # Transient, replaced by each mutating command
    recent_battle_replays: list[BattleReplay] = []

    end_result: EndResult | None = None
    event_seq: int = 0  # Next sequence number for events (monotonically increasing)


class PendingConfiguration(BaseModel):
    map_layout: MapLayout
    max_turns: int
    slots: list[SlotType]


class GameRecord(BaseModel):
    """Top-level persisted unit, stored whole under game:<game_id>."""

    game_id: str
    status: GameStatus
    variant: GameVariant
    players: list[Player] = []
    state: GameState | None = None
    pending_configuration: PendingConfiguration | None = None
    created_at: int
    last_move_at: int


def serialize_record(record: GameRecord) -> str:
    return record.model_dump_json()


def deserialize_record(raw: str | bytes) -> GameRecord:
    return GameRecord.model_validate_json(raw)
