"""Validation layer for game actions and ProcessResult pattern.

Separates validation from processing logic:
- validate_action() checks if an action is valid given current state
- ProcessResult replaces exceptions for control flow
"""

import logging
from dataclasses import dataclass, field

from app.schemas.game_engine import GameState, GameVariant, UpgradeKind

from .actions import (
    TURN_GATED_ACTIONS,
    BuildAction,
    GameAction,
    MoveAction,
)
from .errors import ErrorCode
from .events import AnyGameEvent
from .state import InvalidReference, owner_of, player_by_slot, resource_of
from .upgrades import build_cost, is_max_level
from .variants import get_rules

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Result of processing a game action.

    Replaces exceptions for control flow, providing explicit success/failure
    with error codes suitable for client localization.
    """

    state: GameState | None = None
    events: list[AnyGameEvent] = field(default_factory=list)
    success: bool = True
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(
        cls,
        state: GameState,
        events: list[AnyGameEvent] | None = None,
    ) -> "ProcessResult":
        """Create a successful result with new state and events."""
        return cls(
            state=state,
            events=events or [],
            success=True,
        )

    @classmethod
    def failure(cls, code: str, message: str) -> "ProcessResult":
        """Create a failure result with error details."""
        return cls(
            state=None,
            events=[],
            success=False,
            error_code=code,
            error_message=message,
        )


@dataclass
class ValidationResult:
    """Result of validating an action before processing."""

    is_valid: bool = True
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(is_valid=True)

    @classmethod
    def error(cls, code: str, message: str) -> "ValidationResult":
        """Create a validation failure with error details."""
        return cls(
            is_valid=False,
            error_code=code,
            error_message=message,
        )


def validate_action(
    state: GameState,
    action: GameAction,
    player_slot: int,
) -> ValidationResult:
    """Validate an action before processing.

    Checks:
    - The game has not ended
    - The acting player exists and is still in the game
    - It's the acting player's turn, for turn-gated actions
    - Action-specific rules for moves and builds

    Args:
        state: Current game state.
        action: The action to validate.
        player_slot: The player attempting the action.

    Returns:
        ValidationResult indicating success or failure with error details.
    """
    action_type = type(action).__name__
    logger.debug("Validating action: type=%s, slot=%d", action_type, player_slot)

    if state.end_result is not None:
        logger.warning("Validation failed: GAME_COMPLETED")
        return ValidationResult.error(ErrorCode.GAME_COMPLETED, "Game has already finished")

    try:
        player_by_slot(state, player_slot)
    except InvalidReference:
        logger.warning("Validation failed: PLAYER_NOT_FOUND, slot=%d", player_slot)
        return ValidationResult.error(
            ErrorCode.PLAYER_NOT_FOUND, f"No player in slot {player_slot}"
        )

    if player_slot in state.eliminated_players:
        logger.warning("Validation failed: ALREADY_ELIMINATED, slot=%d", player_slot)
        return ValidationResult.error(
            ErrorCode.ALREADY_ELIMINATED, "Player has already been eliminated"
        )

    if isinstance(action, TURN_GATED_ACTIONS) and state.current_player_slot != player_slot:
        logger.warning(
            "Validation failed: NOT_YOUR_TURN, current=%d, attempted=%d",
            state.current_player_slot,
            player_slot,
        )
        return ValidationResult.error(ErrorCode.NOT_YOUR_TURN, "It's not your turn")

    if isinstance(action, MoveAction):
        return _validate_move(state, action, player_slot)

    if isinstance(action, BuildAction):
        return _validate_build(state, action, player_slot)

    logger.debug("%s validated successfully", action_type)
    return ValidationResult.ok()


def _in_range(state: GameState, *regions: int) -> bool:
    return all(0 <= r < len(state.regions) for r in regions)


def _validate_move(state: GameState, action: MoveAction, player_slot: int) -> ValidationResult:
    rules = get_rules(state)

    if not _in_range(state, action.source, action.destination):
        return ValidationResult.error(
            ErrorCode.INVALID_REFERENCE,
            f"Unknown region in move {action.source} -> {action.destination}",
        )
    if action.count < 1:
        return ValidationResult.error(ErrorCode.INVALID_COUNT, "Must send at least one unit")
    if owner_of(state, action.source) != player_slot:
        return ValidationResult.error(ErrorCode.NOT_OWNED, "You don't own the source region")
    if state.moves_remaining <= 0:
        return ValidationResult.error(ErrorCode.OUT_OF_MOVES, "No moves remaining this turn")
    if state.variant == GameVariant.CONQUEST and action.source in state.conquered_regions:
        return ValidationResult.error(
            ErrorCode.ALREADY_MOVED, "Armies that conquered this turn cannot move again"
        )

    available = rules.force_at(state, action.source)
    if action.count > available:
        return ValidationResult.error(
            ErrorCode.INSUFFICIENT_FORCE,
            f"Only {available} units available at region {action.source}",
        )
    if not rules.is_reachable(state, action.source, action.destination):
        return ValidationResult.error(
            ErrorCode.UNREACHABLE,
            f"Region {action.destination} cannot be reached from {action.source}",
        )

    logger.debug("MoveAction validated successfully")
    return ValidationResult.ok()


def _validate_build(state: GameState, action: BuildAction, player_slot: int) -> ValidationResult:
    if not _in_range(state, action.region):
        return ValidationResult.error(
            ErrorCode.INVALID_REFERENCE, f"Unknown region: {action.region}"
        )
    if owner_of(state, action.region) != player_slot:
        return ValidationResult.error(ErrorCode.NOT_OWNED, "You don't own this region")

    if action.upgrade == UpgradeKind.NONE:
        return ValidationResult.error(ErrorCode.INVALID_UPGRADE, "Nothing to build")
    if state.variant == GameVariant.ARMADA and action.upgrade != UpgradeKind.SOLDIER:
        return ValidationResult.error(
            ErrorCode.INVALID_UPGRADE, "Only ships can be built in this game"
        )
    if action.count < 1 or (action.upgrade != UpgradeKind.SOLDIER and action.count != 1):
        return ValidationResult.error(ErrorCode.INVALID_COUNT, f"Invalid count: {action.count}")

    if state.variant == GameVariant.CONQUEST:
        temple = state.temples_by_region.get(action.region)
        if temple is None:
            return ValidationResult.error(ErrorCode.NO_TEMPLE, "Region has no temple")
        if action.upgrade == UpgradeKind.REBUILD and temple.upgrade == UpgradeKind.NONE:
            return ValidationResult.error(ErrorCode.INVALID_UPGRADE, "Temple has no upgrade")
        if action.upgrade not in (UpgradeKind.SOLDIER, UpgradeKind.REBUILD) and is_max_level(
            temple, action.upgrade
        ):
            return ValidationResult.error(
                ErrorCode.MAX_LEVEL_REACHED, f"{action.upgrade.value} is already at max level"
            )

    cost = build_cost(state, action)
    available = resource_of(state, player_slot)
    if cost > available:
        return ValidationResult.error(
            ErrorCode.INSUFFICIENT_RESOURCE, f"Costs {cost}, you have {available}"
        )

    logger.debug("BuildAction validated successfully: cost=%d", cost)
    return ValidationResult.ok()
