"""Turn rotation, move budget and game-completion rules."""

import logging

from app.schemas.game_engine import EndReason, EndResult, GameState

from .constants import BASE_MOVES_PER_TURN, UNLIMITED_TURNS
from .elimination import active_players
from .state import regions_owned_by
from .upgrades import air_bonus
from .variants import get_rules

logger = logging.getLogger(__name__)


def active_slots_in_order(state: GameState) -> list[int]:
    """Slots still in the game, in turn order."""
    return sorted(p.slot_index for p in active_players(state))


def next_active_slot(state: GameState, current: int) -> int | None:
    """Slot that plays after `current`, wrapping around.

    `current` may already be eliminated (a resigning player). Returns None
    when nobody else is left to play.
    """
    slots = active_slots_in_order(state)
    if not [s for s in slots if s != current]:
        return None
    for slot in slots:
        if slot > current:
            return slot
    return slots[0]


def moves_for_turn(state: GameState, slot: int) -> int:
    return BASE_MOVES_PER_TURN + air_bonus(state, slot)


def score(state: GameState, slot: int) -> int:
    """Regions dominate; stationed forces break ties."""
    rules = get_rules(state)
    return len(regions_owned_by(state, slot)) * 1000 + rules.forces_in_owned_regions(state, slot)


def check_last_player_standing(state: GameState, reason: EndReason) -> EndResult | None:
    """End the game when at most one player is left."""
    remaining = active_players(state)
    if len(remaining) > 1:
        return None
    if not remaining:
        logger.info("No players remain, game drawn")
        return EndResult(winner_slot=None, is_draw=True, reason=reason)
    logger.info("Last player standing: slot=%d", remaining[0].slot_index)
    return EndResult(winner_slot=remaining[0].slot_index, reason=reason)


def check_turn_limit(state: GameState) -> EndResult | None:
    """Decide the game by score once the turn limit has passed."""
    if state.max_turns == UNLIMITED_TURNS or state.turn_number <= state.max_turns:
        return None

    scores = {slot: score(state, slot) for slot in active_slots_in_order(state)}
    logger.info("Turn limit reached: turn=%d, scores=%s", state.turn_number, scores)
    if not scores:
        return EndResult(winner_slot=None, is_draw=True, reason=EndReason.TURN_LIMIT)

    top = max(scores.values())
    leaders = [slot for slot, value in scores.items() if value == top]
    if len(leaders) > 1:
        return EndResult(winner_slot=None, is_draw=True, reason=EndReason.TURN_LIMIT)
    return EndResult(winner_slot=leaders[0], reason=EndReason.TURN_LIMIT)
