"""Main entry point for game action processing.

This module provides the primary interface for processing game actions:
- process_action(): Validates and processes any game action
- Dispatches to specialized handlers based on action type
- Runs elimination and game-end checks after every mutating command
- Returns ProcessResult with new state and events
"""

import logging
import random

from app.schemas.game_engine import EndReason, GameState

from .actions import BuildAction, EndTurnAction, GameAction, MoveAction, ResignAction
from .elimination import apply_eliminations, eliminate_player
from .errors import ErrorCode
from .events import (
    AnyGameEvent,
    GameEnded,
    IncomeCollected,
    PlayerEliminated,
    PlayerResigned,
    TurnEnded,
)
from .scheduler import (
    check_last_player_standing,
    check_turn_limit,
    moves_for_turn,
    next_active_slot,
)
from .state import InvalidReference, adjust_resource, remove_armadas_of
from .upgrades import apply_build
from .validation import ProcessResult, validate_action
from .variants import get_rules

logger = logging.getLogger(__name__)


def process_action(
    state: GameState,
    action: GameAction,
    player_slot: int,
    rng: random.Random | None = None,
) -> ProcessResult:
    """Process a game action and return the result.

    This is the main entry point for all game actions. It:
    1. Validates the action is legal given current state
    2. Dispatches to the appropriate handler on a copy of the state
    3. Eliminates players left without locations and detects game end
    4. Assigns sequence numbers to events

    The input state is never modified; a rejected action leaves it exactly
    as it was.

    Args:
        state: Current game state.
        action: The action to process.
        player_slot: The player attempting the action.
        rng: Random source for battles. Defaults to one seeded from the state.

    Returns:
        ProcessResult containing:
        - success: Whether the action was processed successfully
        - state: The new game state (if successful)
        - events: List of events that occurred (with seq numbers)
        - error_code/error_message: Error details (if failed)
    """
    action_type = type(action).__name__
    logger.info(
        "Processing action: type=%s, slot=%d, turn=%d",
        action_type,
        player_slot,
        state.turn_number,
    )
    logger.debug("Action details: %s", action)

    validation = validate_action(state, action, player_slot)
    if not validation.is_valid:
        logger.warning(
            "Action validation failed: code=%s, message=%s, slot=%d, action=%s",
            validation.error_code,
            validation.error_message,
            player_slot,
            action_type,
        )
        return ProcessResult.failure(
            validation.error_code or ErrorCode.INTERNAL_ERROR,
            validation.error_message or "Invalid action",
        )

    # Battle replays describe only the latest command
    working = state.model_copy(update={"recent_battle_replays": []})
    end_reason = EndReason.ELIMINATION

    try:
        if isinstance(action, MoveAction):
            working, events = process_move(working, action, player_slot, rng)

        elif isinstance(action, BuildAction):
            working, events = apply_build(working, player_slot, action)

        elif isinstance(action, EndTurnAction):
            working, events = process_end_turn(working, player_slot, rng)

        elif isinstance(action, ResignAction):
            working, events = process_resign(working, player_slot, rng)
            end_reason = EndReason.RESIGNATION

        else:
            logger.error("Unknown action type received: %s", action_type)
            return ProcessResult.failure(
                ErrorCode.UNKNOWN_ACTION,
                f"Unknown action type: {action_type}",
            )
    except InvalidReference as e:
        logger.error("Invalid reference while processing %s: %s", action_type, e)
        return ProcessResult.failure(ErrorCode.INVALID_REFERENCE, str(e))

    working, final_events = _post_process(working, end_reason)
    result = _assign_event_sequences(ProcessResult.ok(working, events + final_events))

    logger.info(
        "Action processed successfully: type=%s, slot=%d, events_generated=%d",
        action_type,
        player_slot,
        len(result.events),
    )
    logger.debug("Generated events: %s", [type(e).__name__ for e in result.events])
    return result


def _post_process(
    state: GameState, reason: EndReason
) -> tuple[GameState, list[AnyGameEvent]]:
    """Eliminate players without locations and end the game if decided."""
    events: list[AnyGameEvent] = []
    if state.end_result is not None:
        return state, events

    state, eliminated = apply_eliminations(state)
    events.extend(PlayerEliminated(player_slot=slot) for slot in eliminated)

    end_result = check_last_player_standing(state, reason)
    if end_result is not None:
        state = state.model_copy(update={"end_result": end_result})
        events.append(
            GameEnded(
                winner_slot=end_result.winner_slot,
                is_draw=end_result.is_draw,
                reason=end_result.reason,
            )
        )
        logger.info(
            "Game ended: winner=%s, draw=%s, reason=%s",
            end_result.winner_slot,
            end_result.is_draw,
            end_result.reason.value,
        )
    return state, events


def _assign_event_sequences(result: ProcessResult) -> ProcessResult:
    """Assign monotonically increasing sequence numbers to events.

    Updates each event's seq field and increments the state's event_seq counter.
    """
    if result.state is None or not result.events:
        return result

    current_seq = result.state.event_seq
    for event in result.events:
        event.seq = current_seq
        current_seq += 1

    new_state = result.state.model_copy(update={"event_seq": current_seq})

    return ProcessResult.ok(new_state, result.events)


def process_move(
    state: GameState,
    action: MoveAction,
    player_slot: int,
    rng: random.Random | None = None,
) -> tuple[GameState, list[AnyGameEvent]]:
    """Send units and resolve what happens at the destination.

    A move costs exactly one move whatever its outcome.
    """
    rules = get_rules(state)
    state = state.model_copy(update={"moves_remaining": state.moves_remaining - 1})
    return rules.dispatch(
        state, player_slot, action.source, action.destination, action.count, rng
    )


def process_end_turn(
    state: GameState,
    player_slot: int,
    rng: random.Random | None = None,
) -> tuple[GameState, list[AnyGameEvent]]:
    """Collect income, produce units and hand the turn to the next player."""
    rules = get_rules(state)
    income = rules.income(state, player_slot)
    state = adjust_resource(state, player_slot, income)
    events: list[AnyGameEvent] = [IncomeCollected(player_slot=player_slot, amount=income)]
    logger.debug("Income collected: slot=%d, amount=%d", player_slot, income)

    state, production_events = rules.end_of_turn_production(state, player_slot)
    events.extend(production_events)

    state, turn_events = advance_turn(state, player_slot, "end_turn", rng)
    return state, events + turn_events


def process_resign(
    state: GameState,
    player_slot: int,
    rng: random.Random | None = None,
) -> tuple[GameState, list[AnyGameEvent]]:
    """Eliminate the player and recall their fleets in transit.

    Plain elimination leaves armadas alone; resigning removes them. If it was
    the resigning player's turn, play moves on as if they had ended it,
    without collecting income.
    """
    state = eliminate_player(state, player_slot)
    state, removed = remove_armadas_of(state, player_slot)
    events: list[AnyGameEvent] = [
        PlayerResigned(player_slot=player_slot, armadas_removed=len(removed))
    ]
    logger.info("Player resigned: slot=%d, armadas_removed=%d", player_slot, len(removed))

    if state.current_player_slot == player_slot:
        state, turn_events = advance_turn(state, player_slot, "resigned", rng)
        events.extend(turn_events)
    return state, events


def advance_turn(
    state: GameState,
    from_slot: int,
    reason: str,
    rng: random.Random | None = None,
) -> tuple[GameState, list[AnyGameEvent]]:
    """Hand the turn to the next active slot.

    turn_number increases once per full rotation, when play wraps back
    around to a lower slot. The turn limit is checked at that point.
    """
    next_slot = next_active_slot(state, from_slot)
    if next_slot is None:
        logger.debug("No other active player after slot %d", from_slot)
        return state, []

    wrapped = next_slot <= from_slot
    turn_number = state.turn_number + 1 if wrapped else state.turn_number
    state = state.model_copy(
        update={
            "current_player_slot": next_slot,
            "turn_number": turn_number,
            "num_bought_soldiers": 0,
            "conquered_regions": [],
        }
    )
    state = state.model_copy(update={"moves_remaining": moves_for_turn(state, next_slot)})
    events: list[AnyGameEvent] = [
        TurnEnded(
            player_slot=from_slot,
            reason=reason,
            next_player_slot=next_slot,
            turn_number=turn_number,
        )
    ]
    logger.info(
        "Turn advanced: from=%d, to=%d, turn_number=%d", from_slot, next_slot, turn_number
    )

    if wrapped:
        end_result = check_turn_limit(state)
        if end_result is not None:
            state = state.model_copy(update={"end_result": end_result})
            events.append(
                GameEnded(
                    winner_slot=end_result.winner_slot,
                    is_draw=end_result.is_draw,
                    reason=end_result.reason,
                )
            )
            return state, events

    state, arrival_events = get_rules(state).start_of_turn(state, next_slot, rng)
    return state, events + arrival_events
