"""Pydantic schemas for game requests and responses."""

from pydantic import BaseModel, Field

from app.schemas.game_engine import GameRecord, GameVariant, MapLayout, SlotType, UpgradeKind
from app.services.game.engine import AnyGameEvent
from app.services.game.engine.constants import MAX_PLAYERS, MIN_PLAYERS, UNLIMITED_TURNS


class CreateGameRequest(BaseModel):
    """Request body for creating a pending game."""

    variant: GameVariant = GameVariant.CONQUEST
    player_name: str = Field(..., min_length=1, max_length=32, description="Creator's name")
    map_layout: MapLayout
    slots: list[SlotType] = Field(
        ...,
        min_length=MIN_PLAYERS,
        max_length=MAX_PLAYERS,
        description="Slot types indexed by slot; slot 0 is the creator",
    )
    max_turns: int = Field(UNLIMITED_TURNS, ge=1)


class JoinGameRequest(BaseModel):
    player_name: str = Field(..., min_length=1, max_length=32)
    slot_index: int = Field(..., ge=0, le=MAX_PLAYERS - 1)


class PlayerCommand(BaseModel):
    """Base for requests made on behalf of a seated player."""

    player_slot: int = Field(..., ge=0, description="Slot of the acting player")


class QuitGameRequest(PlayerCommand):
    pass


class MoveRequest(PlayerCommand):
    source: int = Field(..., ge=0)
    destination: int = Field(..., ge=0)
    count: int
    defer_write: bool = Field(
        False,
        description="Hold the new state in this process instead of writing it now",
    )


class BuildRequest(PlayerCommand):
    region: int = Field(..., ge=0)
    upgrade: UpgradeKind
    count: int = 1


class EndTurnRequest(PlayerCommand):
    pass


class ResignRequest(PlayerCommand):
    pass


class GameActionResponse(BaseModel):
    """Response from any game operation."""

    success: bool
    game: GameRecord | None = Field(None, description="Game after the operation")
    events: list[AnyGameEvent] = []
    slot_index: int | None = Field(None, description="Caller's slot after a lobby operation")
    deferred: bool = Field(False, description="True if the write is held in this process")
    error: str | None = None


class GameListResponse(BaseModel):
    games: list[GameRecord]
