"""Game event types - emitted during state transitions for client broadcasts.

Events describe what happened during a command, enabling:
- Frontend animations (battle replays, conquered regions)
- Action audit logging
- Notification payloads for connected clients
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from app.schemas.game_engine import BattleReplay, EndReason, UpgradeKind


class GameEvent(BaseModel):
    """Base class for all game events."""

    event_type: str
    seq: int = 0  # Sequence number assigned during processing


class GameStarted(GameEvent):
    """Game has transitioned from PENDING to ACTIVE."""

    event_type: Literal["game_started"] = "game_started"
    player_order: list[int] = Field(..., description="Player slots in turn order")
    first_player_slot: int


class ArmyMoved(GameEvent):
    """Units left a region, heading to another."""

    event_type: Literal["army_moved"] = "army_moved"
    player_slot: int
    source: int
    destination: int
    count: int


class BattleFought(GameEvent):
    """A battle was resolved at a location."""

    event_type: Literal["battle_fought"] = "battle_fought"
    replay: BattleReplay


class RegionConquered(GameEvent):
    """A location changed hands."""

    event_type: Literal["region_conquered"] = "region_conquered"
    player_slot: int
    region: int
    previous_owner: int | None = None


class ArmadaDispatched(GameEvent):
    """A fleet left a planet."""

    event_type: Literal["armada_dispatched"] = "armada_dispatched"
    player_slot: int
    armada_id: str
    source: int
    destination: int
    ships: int
    arrival_turn: int


class ArmadaArrived(GameEvent):
    """A fleet reached its destination and was resolved."""

    event_type: Literal["armada_arrived"] = "armada_arrived"
    player_slot: int
    armada_id: str
    destination: int
    ships: int


class TempleUpgraded(GameEvent):
    event_type: Literal["temple_upgraded"] = "temple_upgraded"
    player_slot: int
    region: int
    upgrade: UpgradeKind
    level: int
    cost: int


class UnitsRecruited(GameEvent):
    """Soldiers or ships were bought at a location."""

    event_type: Literal["units_recruited"] = "units_recruited"
    player_slot: int
    region: int
    count: int
    cost: int


class IncomeCollected(GameEvent):
    event_type: Literal["income_collected"] = "income_collected"
    player_slot: int
    amount: int


class SoldiersGenerated(GameEvent):
    """Temples produced soldiers at end of turn."""

    event_type: Literal["soldiers_generated"] = "soldiers_generated"
    player_slot: int
    regions: list[int]


class TurnEnded(GameEvent):
    """A player's turn has ended."""

    event_type: Literal["turn_ended"] = "turn_ended"
    player_slot: int
    reason: str = Field(..., description="Why turn ended: 'end_turn', 'resigned'")
    next_player_slot: int | None = None
    turn_number: int


class PlayerEliminated(GameEvent):
    event_type: Literal["player_eliminated"] = "player_eliminated"
    player_slot: int


class PlayerResigned(GameEvent):
    event_type: Literal["player_resigned"] = "player_resigned"
    player_slot: int
    armadas_removed: int = 0


class GameEnded(GameEvent):
    """The game has finished."""

    event_type: Literal["game_ended"] = "game_ended"
    winner_slot: int | None = None
    is_draw: bool = False
    reason: EndReason


# Union of all event types for type checking
AnyGameEvent = Annotated[
    GameStarted
    | ArmyMoved
    | BattleFought
    | RegionConquered
    | ArmadaDispatched
    | ArmadaArrived
    | TempleUpgraded
    | UnitsRecruited
    | IncomeCollected
    | SoldiersGenerated
    | TurnEnded
    | PlayerEliminated
    | PlayerResigned
    | GameEnded,
    Field(discriminator="event_type"),
]
