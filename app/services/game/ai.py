"""AI turn advancement.

Deciding what an AI does is delegated to an AiDecider hook. The default
PassiveAi ends its turn immediately; smarter deciders can be plugged in
without touching the engine.
"""

import logging
import random
from typing import Protocol

from app.schemas.game_engine import GameState

from .engine import AnyGameEvent, EndTurnAction, GameAction, process_action
from .engine.state import player_by_slot

logger = logging.getLogger(__name__)


class AiDecider(Protocol):
    def choose_actions(self, state: GameState, slot: int) -> list[GameAction]:
        """Actions the AI in `slot` wants to take this turn, in order."""
        ...


class PassiveAi:
    """Ends its turn without doing anything."""

    def choose_actions(self, state: GameState, slot: int) -> list[GameAction]:
        return [EndTurnAction()]


def is_ai_turn(state: GameState) -> bool:
    if state.end_result is not None:
        return False
    return player_by_slot(state, state.current_player_slot).is_ai


def advance_ai_turns(
    state: GameState,
    decider: AiDecider | None = None,
    rng: random.Random | None = None,
) -> tuple[GameState, list[AnyGameEvent]]:
    """Play AI turns until a human is up or the game ends.

    Rejected AI actions are skipped. If the decider's actions do not end the
    turn, the turn is ended on its behalf so play cannot stall.
    """
    decider = decider or PassiveAi()
    events: list[AnyGameEvent] = []
    # Every player acts at most once per rotation; one extra rotation covers wraparound
    budget = 2 * len(state.players)

    while is_ai_turn(state) and budget > 0:
        budget -= 1
        slot = state.current_player_slot
        turn_number = state.turn_number

        for action in decider.choose_actions(state, slot):
            result = process_action(state, action, slot, rng)
            if not result.success or result.state is None:
                logger.warning(
                    "AI action rejected: slot=%d, action=%s, code=%s",
                    slot,
                    type(action).__name__,
                    result.error_code,
                )
                continue
            state = result.state
            events.extend(result.events)
            if state.current_player_slot != slot or state.turn_number != turn_number:
                break

        still_on_turn = state.current_player_slot == slot and state.turn_number == turn_number
        if is_ai_turn(state) and still_on_turn:
            result = process_action(state, EndTurnAction(), slot, rng)
            if not result.success or result.state is None:
                logger.error("AI could not end its turn: slot=%d, code=%s", slot, result.error_code)
                break
            state = result.state
            events.extend(result.events)

    return state, events
