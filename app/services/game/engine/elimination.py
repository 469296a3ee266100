"""Player elimination.

A player who owns no locations is out. Eliminating a player strips their
ownership but leaves their units where they stand as neutral forces, so the
total unit count is preserved. In-transit armadas are left alone here; the
resign flow removes them explicitly.
"""

import logging

from app.schemas.game_engine import GameState, Player

from .state import player_by_slot

logger = logging.getLogger(__name__)


def active_players(state: GameState) -> list[Player]:
    eliminated = set(state.eliminated_players)
    return [p for p in state.players if p.slot_index not in eliminated]


def check_for_eliminations(state: GameState) -> list[int]:
    """Slots of players still in the game who own zero locations."""
    owned_counts: dict[int, int] = {}
    for owner in state.owners_by_region.values():
        owned_counts[owner] = owned_counts.get(owner, 0) + 1
    return [
        p.slot_index for p in active_players(state) if owned_counts.get(p.slot_index, 0) == 0
    ]


def eliminate_player(state: GameState, slot: int) -> GameState:
    """Remove a player from play. Idempotent."""
    player_by_slot(state, slot)
    owners = {r: owner for r, owner in state.owners_by_region.items() if owner != slot}
    if slot in state.eliminated_players and len(owners) == len(state.owners_by_region):
        return state

    eliminated = list(state.eliminated_players)
    if slot not in eliminated:
        eliminated.append(slot)
        logger.info("Player eliminated: slot=%d", slot)

    return state.model_copy(
        update={"owners_by_region": owners, "eliminated_players": eliminated}
    )


def apply_eliminations(state: GameState) -> tuple[GameState, list[int]]:
    """Eliminate every player left without a location."""
    newly_eliminated = check_for_eliminations(state)
    for slot in newly_eliminated:
        state = eliminate_player(state, slot)
    return state, newly_eliminated
