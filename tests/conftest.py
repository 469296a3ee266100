"""Shared fixtures for game engine and service tests."""

import asyncio
import os
import random

import pytest

# Routes and singletons read settings; keep them local and quiet
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("NOTIFY_URL", "")
os.environ.setdefault("AI_SWEEP_INTERVAL_SECONDS", "0")

from app.schemas.game_engine import (  # noqa: E402
    Armada,
    GameRecord,
    GameState,
    GameStatus,
    GameVariant,
    MapLayout,
    Player,
    Region,
    Temple,
    UpgradeKind,
)
from app.services.game.engine.constants import (  # noqa: E402
    BASE_MOVES_PER_TURN,
    UNLIMITED_TURNS,
    player_color,
)
from app.services.game.engine.state import add_soldiers, set_ships  # noqa: E402
from app.services.storage import MemoryStorageAdapter, StorageUnavailable  # noqa: E402

SEED = 1234
NOW_MS = 1_700_000_000_000


class ScriptedRandom(random.Random):
    """Random source returning a fixed cycle of die draws.

    Draws alternate attacker then defender within a combat round.
    """

    def __init__(self, draws: list[int]):
        super().__init__(0)
        self._draws = list(draws)
        self._index = 0

    def randint(self, a: int, b: int) -> int:
        value = self._draws[self._index % len(self._draws)]
        self._index += 1
        return value


class FakeClock:
    """Manually advanced clock for TTL and grace window tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def run(coro):
    return asyncio.run(coro)


def create_player(slot_index: int, name: str | None = None, is_ai: bool = False) -> Player:
    """Helper to create a player."""
    return Player(
        slot_index=slot_index,
        name=name or f"Player {slot_index + 1}",
        color=player_color(slot_index),
        is_ai=is_ai,
    )


def create_regions(count: int = 4) -> list[Region]:
    """Regions laid out in a line: 0 - 1 - 2 - ... - (count - 1)."""
    return [
        Region(
            index=i,
            name=f"Region {i}",
            neighbors=[n for n in (i - 1, i + 1) if 0 <= n < count],
        )
        for i in range(count)
    ]


def create_map_layout(
    region_count: int = 4,
    home_regions: list[int] | None = None,
    temple_regions: list[int] | None = None,
) -> MapLayout:
    return MapLayout(
        regions=create_regions(region_count),
        home_regions=home_regions if home_regions is not None else [0, region_count - 1, 1, 2],
        temple_regions=temple_regions if temple_regions is not None else [0, region_count - 1],
    )


def create_conquest_state(
    players: list[Player] | None = None,
    owners: dict[int, int] | None = None,
    garrisons: dict[int, int] | None = None,
    temples: dict[int, tuple[UpgradeKind, int]] | None = None,
    resources: dict[int, int] | None = None,
    current_player_slot: int = 0,
    moves_remaining: int = BASE_MOVES_PER_TURN,
    region_count: int = 4,
    max_turns: int = UNLIMITED_TURNS,
    turn_number: int = 1,
) -> GameState:
    """Conquest state on a line map.

    Defaults: two players, slot 0 owns region 0 with 5 soldiers, slot 1 owns
    the last region with 5 soldiers, both regions carry a plain temple.
    """
    players = players or [create_player(0), create_player(1)]
    last = region_count - 1
    owners = owners if owners is not None else {0: 0, last: 1}
    garrisons = garrisons if garrisons is not None else {0: 5, last: 5}
    temples = temples if temples is not None else {0: (UpgradeKind.NONE, 0), last: (UpgradeKind.NONE, 0)}

    state = GameState(
        variant=GameVariant.CONQUEST,
        players=players,
        regions=create_regions(region_count),
        rng_seed=SEED,
        max_turns=max_turns,
        turn_number=turn_number,
        current_player_slot=current_player_slot,
        moves_remaining=moves_remaining,
        owners_by_region=dict(owners),
        resource_by_player=resources or {p.slot_index: 0 for p in players},
        temples_by_region={
            region: Temple(region_index=region, upgrade=kind, level=level)
            for region, (kind, level) in temples.items()
        },
    )
    for region, count in sorted(garrisons.items()):
        state = add_soldiers(state, region, count)
    return state


def create_armada_state(
    players: list[Player] | None = None,
    owners: dict[int, int] | None = None,
    ships: dict[int, int] | None = None,
    armadas: list[Armada] | None = None,
    resources: dict[int, int] | None = None,
    current_player_slot: int = 0,
    moves_remaining: int = BASE_MOVES_PER_TURN,
    region_count: int = 4,
    turn_number: int = 1,
) -> GameState:
    """Armada state: slot 0 on planet 0, slot 1 on the last planet, 10 ships each."""
    players = players or [create_player(0), create_player(1)]
    last = region_count - 1
    owners = owners if owners is not None else {0: 0, last: 1}
    ships = ships if ships is not None else {0: 10, last: 10}

    state = GameState(
        variant=GameVariant.ARMADA,
        players=players,
        regions=create_regions(region_count),
        rng_seed=SEED,
        max_turns=UNLIMITED_TURNS,
        turn_number=turn_number,
        current_player_slot=current_player_slot,
        moves_remaining=moves_remaining,
        owners_by_region=dict(owners),
        resource_by_player=resources or {p.slot_index: 0 for p in players},
        armadas=armadas or [],
    )
    for planet, count in ships.items():
        state = set_ships(state, planet, count)
    return state


def create_armada(
    armada_id: str,
    owner_slot: int = 0,
    ships: int = 3,
    source: int = 0,
    destination: int = 1,
    arrival_turn: int = 2,
) -> Armada:
    return Armada(
        id=armada_id,
        owner_slot=owner_slot,
        ships=ships,
        source=source,
        destination=destination,
        departure_turn=arrival_turn - 1,
        arrival_turn=arrival_turn,
    )


def create_active_record(state: GameState, game_id: str = "game-1") -> GameRecord:
    return GameRecord(
        game_id=game_id,
        status=GameStatus.ACTIVE,
        variant=state.variant,
        players=state.players,
        state=state,
        created_at=NOW_MS,
        last_move_at=NOW_MS,
    )


@pytest.fixture
def two_player_conquest() -> GameState:
    """Two-player conquest game, slot 0 to move."""
    return create_conquest_state()


@pytest.fixture
def three_player_conquest() -> GameState:
    """Three players on a five-region line, each holding one region."""
    return create_conquest_state(
        players=[create_player(0), create_player(1), create_player(2)],
        owners={0: 0, 2: 1, 4: 2},
        garrisons={0: 5, 2: 5, 4: 5},
        temples={0: (UpgradeKind.NONE, 0), 4: (UpgradeKind.NONE, 0)},
        region_count=5,
    )


@pytest.fixture
def two_player_armada() -> GameState:
    """Two-player armada game, slot 0 to move."""
    return create_armada_state()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FailingStorageAdapter(MemoryStorageAdapter):
    """Memory adapter whose writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    async def put(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageUnavailable(f"Failed to write {key}")
        await super().put(key, value)

    async def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StorageUnavailable(f"Failed to delete {key}")
        await super().delete(key)
