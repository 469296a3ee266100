"""Lobby flow: creating, joining, starting and leaving pending games.

A game is created PENDING with one slot per potential player. Humans claim
OPEN slots by joining; when the last OPEN slot is claimed the game starts on
its own. An explicit start fills the remaining OPEN slots with AI players.
"""

import logging
import random
from dataclasses import dataclass

from app.schemas.game_engine import (
    GameRecord,
    GameState,
    GameStatus,
    GameVariant,
    MapLayout,
    PendingConfiguration,
    Player,
    SlotType,
    Temple,
)

from .engine.constants import (
    BASE_MOVES_PER_TURN,
    MAX_PLAYERS,
    MIN_PLAYERS,
    NEUTRAL_STARTING_SOLDIERS,
    OWNER_STARTING_SOLDIERS,
    STARTING_RESOURCES,
    STARTING_SHIPS,
    UNLIMITED_TURNS,
    player_color,
)
from .engine.errors import ErrorCode
from .engine.events import GameStarted
from .engine.state import add_soldiers, set_owner, set_ships, set_temple

logger = logging.getLogger(__name__)


@dataclass
class LobbyResult:
    """Result of a lobby operation on a pending game."""

    success: bool
    record: GameRecord | None = None
    started: GameStarted | None = None
    slot_index: int | None = None
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(
        cls,
        record: GameRecord | None,
        slot_index: int | None = None,
        started: GameStarted | None = None,
    ) -> "LobbyResult":
        return cls(success=True, record=record, slot_index=slot_index, started=started)

    @classmethod
    def failure(cls, code: str, message: str) -> "LobbyResult":
        return cls(success=False, error_code=code, error_message=message)


def validate_game_configuration(
    map_layout: MapLayout, slots: list[SlotType], max_turns: int
) -> None:
    """Validate a new game's configuration.

    Raises:
        ValueError: If the configuration cannot produce a playable game.
    """
    if not MIN_PLAYERS <= len(slots) <= MAX_PLAYERS:
        raise ValueError(f"A game needs between {MIN_PLAYERS} and {MAX_PLAYERS} slots.")
    if slots[0] != SlotType.HUMAN:
        raise ValueError("Slot 0 belongs to the player creating the game.")

    # Slot indices stay dense: disabled slots may only trail the used ones
    used = [s for s in slots if s != SlotType.OFF]
    if slots[: len(used)] != used:
        raise ValueError("Disabled slots must come after all used slots.")
    if len(used) < MIN_PLAYERS:
        raise ValueError(f"A minimum of {MIN_PLAYERS} players is required.")
    if max_turns < 1:
        raise ValueError("max_turns must be positive.")

    region_count = len(map_layout.regions)
    for position, region in enumerate(map_layout.regions):
        if region.index != position:
            raise ValueError(f"Region at position {position} has index {region.index}.")
        for neighbor in region.neighbors:
            if not 0 <= neighbor < region_count:
                raise ValueError(f"Region {region.index} has unknown neighbor {neighbor}.")

    if len(map_layout.home_regions) < len(used):
        raise ValueError("Every player needs a home region.")
    homes = map_layout.home_regions[: len(used)]
    if len(set(homes)) != len(homes):
        raise ValueError("Home regions must be distinct.")
    for region in [*homes, *map_layout.temple_regions]:
        if not 0 <= region < region_count:
            raise ValueError(f"Unknown region index: {region}")


def _ai_player(slot_index: int) -> Player:
    return Player(
        slot_index=slot_index,
        name=f"Computer {slot_index + 1}",
        color=player_color(slot_index),
        is_ai=True,
    )


def create_pending_record(
    game_id: str,
    variant: GameVariant,
    creator_name: str,
    map_layout: MapLayout,
    slots: list[SlotType],
    now_ms: int,
    max_turns: int = UNLIMITED_TURNS,
) -> GameRecord:
    """Create a PENDING record with the creator seated in slot 0.

    Raises:
        ValueError: If the configuration is invalid.
    """
    validate_game_configuration(map_layout, slots, max_turns)

    players = [Player(slot_index=0, name=creator_name, color=player_color(0))]
    players.extend(_ai_player(i) for i, slot in enumerate(slots) if slot == SlotType.AI)

    logger.info(
        "Pending game created: game_id=%s, variant=%s, slots=%s",
        game_id,
        variant.value,
        [s.value for s in slots],
    )
    return GameRecord(
        game_id=game_id,
        status=GameStatus.PENDING,
        variant=variant,
        players=players,
        pending_configuration=PendingConfiguration(
            map_layout=map_layout, max_turns=max_turns, slots=slots
        ),
        created_at=now_ms,
        last_move_at=now_ms,
    )


def join_game(
    record: GameRecord, name: str, slot_index: int, now_ms: int, rng_seed: int | None = None
) -> LobbyResult:
    """Seat a human player in an OPEN slot; auto-start when none are left."""
    if record.status != GameStatus.PENDING or record.pending_configuration is None:
        return LobbyResult.failure(ErrorCode.GAME_ALREADY_STARTED, "Game has already started")

    slots = record.pending_configuration.slots
    if not 0 <= slot_index < len(slots) or slots[slot_index] != SlotType.OPEN:
        return LobbyResult.failure(
            ErrorCode.SLOT_UNAVAILABLE, f"Slot {slot_index} is not open"
        )
    if any(p.slot_index == slot_index for p in record.players):
        return LobbyResult.failure(ErrorCode.SLOT_UNAVAILABLE, f"Slot {slot_index} is taken")
    if any(p.name == name for p in record.players):
        return LobbyResult.failure(ErrorCode.NAME_TAKEN, f"Name '{name}' is already in use")

    new_slots = list(slots)
    new_slots[slot_index] = SlotType.HUMAN
    players = sorted(
        [*record.players, Player(slot_index=slot_index, name=name, color=player_color(slot_index))],
        key=lambda p: p.slot_index,
    )
    record = record.model_copy(
        update={
            "players": players,
            "pending_configuration": record.pending_configuration.model_copy(
                update={"slots": new_slots}
            ),
            "last_move_at": now_ms,
        }
    )
    logger.info("Player joined: game_id=%s, slot=%d, name=%s", record.game_id, slot_index, name)

    if SlotType.OPEN not in new_slots:
        logger.info("All slots filled, auto-starting game %s", record.game_id)
        started = start_game(record, now_ms, rng_seed)
        started.slot_index = slot_index
        return started
    return LobbyResult.ok(record, slot_index=slot_index)


def start_game(record: GameRecord, now_ms: int, rng_seed: int | None = None) -> LobbyResult:
    """Fill remaining OPEN slots with AI and make the game ACTIVE."""
    if record.status != GameStatus.PENDING or record.pending_configuration is None:
        return LobbyResult.failure(ErrorCode.GAME_ALREADY_STARTED, "Game has already started")

    config = record.pending_configuration
    players = list(record.players)
    for slot_index, slot in enumerate(config.slots):
        if slot == SlotType.OPEN:
            players.append(_ai_player(slot_index))
    players.sort(key=lambda p: p.slot_index)

    if len(players) < MIN_PLAYERS:
        return LobbyResult.failure(
            ErrorCode.NOT_ENOUGH_PLAYERS, f"A minimum of {MIN_PLAYERS} players is required"
        )

    seed = rng_seed if rng_seed is not None else random.SystemRandom().randrange(2**31)
    state = initialize_state(record.variant, players, config.map_layout, config.max_turns, seed)
    record = record.model_copy(
        update={
            "status": GameStatus.ACTIVE,
            "players": players,
            "state": state,
            "pending_configuration": None,
            "last_move_at": now_ms,
        }
    )
    started = GameStarted(
        player_order=[p.slot_index for p in players],
        first_player_slot=state.current_player_slot,
    )
    logger.info(
        "Game started: game_id=%s, players=%d, first_slot=%d",
        record.game_id,
        len(players),
        state.current_player_slot,
    )
    return LobbyResult.ok(record, started=started)


def quit_pending(record: GameRecord, slot_index: int, now_ms: int) -> LobbyResult:
    """Remove a human from a pending game.

    The slot reopens. When no humans are left the result carries no record,
    meaning the game should be deleted.
    """
    if record.status != GameStatus.PENDING or record.pending_configuration is None:
        return LobbyResult.failure(ErrorCode.GAME_ALREADY_STARTED, "Game has already started")

    leaving = next((p for p in record.players if p.slot_index == slot_index), None)
    if leaving is None or leaving.is_ai:
        return LobbyResult.failure(ErrorCode.PLAYER_NOT_FOUND, f"No player in slot {slot_index}")

    players = [p for p in record.players if p.slot_index != slot_index]
    if not any(not p.is_ai for p in players):
        logger.info("Last human left pending game %s, deleting", record.game_id)
        return LobbyResult.ok(None, slot_index=slot_index)

    slots = list(record.pending_configuration.slots)
    slots[slot_index] = SlotType.OPEN
    record = record.model_copy(
        update={
            "players": players,
            "pending_configuration": record.pending_configuration.model_copy(
                update={"slots": slots}
            ),
            "last_move_at": now_ms,
        }
    )
    logger.info("Player left: game_id=%s, slot=%d", record.game_id, slot_index)
    return LobbyResult.ok(record, slot_index=slot_index)


def initialize_state(
    variant: GameVariant,
    players: list[Player],
    map_layout: MapLayout,
    max_turns: int,
    rng_seed: int,
) -> GameState:
    """Build the opening position.

    Each player starts on their home region. Other temple regions start
    neutral with a small garrison.
    """
    players = sorted(players, key=lambda p: p.slot_index)
    state = GameState(
        variant=variant,
        players=players,
        regions=map_layout.regions,
        rng_seed=rng_seed,
        max_turns=max_turns,
        current_player_slot=players[0].slot_index,
        moves_remaining=BASE_MOVES_PER_TURN,
        resource_by_player={p.slot_index: STARTING_RESOURCES for p in players},
    )

    homes = {p.slot_index: map_layout.home_regions[p.slot_index] for p in players}
    strongholds = sorted(set(map_layout.temple_regions) | set(homes.values()))

    for region in strongholds:
        owner = next((slot for slot, home in homes.items() if home == region), None)
        if owner is not None:
            state = set_owner(state, region, owner)

        if variant == GameVariant.CONQUEST:
            state = set_temple(state, Temple(region_index=region))
            count = OWNER_STARTING_SOLDIERS if owner is not None else NEUTRAL_STARTING_SOLDIERS
            state = add_soldiers(state, region, count)
        else:
            count = STARTING_SHIPS if owner is not None else NEUTRAL_STARTING_SOLDIERS
            state = set_ships(state, region, count)

    return state
