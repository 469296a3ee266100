"""Game engine module - pure functional game logic.

This module provides the core game engine with:
- Action types for explicit user inputs
- Event types for client broadcasts
- ProcessResult pattern for error handling
- Combat, elimination and turn rotation rules
- Variant rules for the conquest and armada games

Usage:
    from app.services.game.engine import (
        process_action,
        ProcessResult,
        MoveAction,
        EndTurnAction,
    )

    # Process an action
    result = process_action(state, MoveAction(source=0, destination=1, count=3), slot)

    if result.success:
        new_state = result.state
        events = result.events  # Broadcast these to connected clients
    else:
        # Handle error
        print(f"Error: {result.error_code} - {result.error_message}")
"""

# Actions - explicit user inputs
from .actions import (
    BuildAction,
    EndTurnAction,
    GameAction,
    MoveAction,
    ResignAction,
    build_action_from_payload,
)

# Combat
from .combat import resolve_combat, rng_for_battle

# Elimination
from .elimination import (
    active_players,
    apply_eliminations,
    check_for_eliminations,
    eliminate_player,
)

# Error taxonomy
from .errors import ERROR_KINDS, ErrorCode, ErrorKind, error_kind

# Events - for client broadcasts
from .events import (
    AnyGameEvent,
    ArmadaArrived,
    ArmadaDispatched,
    ArmyMoved,
    BattleFought,
    GameEnded,
    GameEvent,
    GameStarted,
    IncomeCollected,
    PlayerEliminated,
    PlayerResigned,
    RegionConquered,
    SoldiersGenerated,
    TempleUpgraded,
    TurnEnded,
    UnitsRecruited,
)

# Main processing
from .process import process_action

# Turn rotation
from .scheduler import (
    active_slots_in_order,
    check_last_player_standing,
    check_turn_limit,
    moves_for_turn,
    next_active_slot,
    score,
)
from .state import InvalidReference

# Result types
from .validation import ProcessResult, ValidationResult, validate_action
from .variants import ArmadaRules, ConquestRules, GameRules, get_rules

__all__ = [
    # Actions
    "GameAction",
    "MoveAction",
    "BuildAction",
    "EndTurnAction",
    "ResignAction",
    "build_action_from_payload",
    # Events
    "GameEvent",
    "AnyGameEvent",
    "GameStarted",
    "ArmyMoved",
    "BattleFought",
    "RegionConquered",
    "ArmadaDispatched",
    "ArmadaArrived",
    "TempleUpgraded",
    "UnitsRecruited",
    "IncomeCollected",
    "SoldiersGenerated",
    "TurnEnded",
    "PlayerEliminated",
    "PlayerResigned",
    "GameEnded",
    # Processing
    "process_action",
    # Validation
    "ProcessResult",
    "ValidationResult",
    "validate_action",
    "InvalidReference",
    # Errors
    "ErrorCode",
    "ErrorKind",
    "ERROR_KINDS",
    "error_kind",
    # Combat
    "resolve_combat",
    "rng_for_battle",
    # Elimination
    "active_players",
    "apply_eliminations",
    "check_for_eliminations",
    "eliminate_player",
    # Scheduling
    "active_slots_in_order",
    "next_active_slot",
    "moves_for_turn",
    "score",
    "check_turn_limit",
    "check_last_player_standing",
    # Variants
    "GameRules",
    "ConquestRules",
    "ArmadaRules",
    "get_rules",
]
