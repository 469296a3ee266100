"""Game service module.

Provides:
- Lobby flow and game initialization (start_game.py)
- Game engine processing (engine/)
- AI turn advancement (ai.py, sweeper.py)
- Request-facing workflow (service.py)
"""

# Re-export from engine for convenience
from .engine import (
    BuildAction,
    EndTurnAction,
    GameAction,
    MoveAction,
    ProcessResult,
    ResignAction,
    build_action_from_payload,
    process_action,
)
from .service import GameService, GameServiceResult, get_game_service
from .start_game import (
    LobbyResult,
    create_pending_record,
    initialize_state,
    join_game,
    quit_pending,
    start_game,
    validate_game_configuration,
)
from .sweeper import TurnSweeper

__all__ = [
    # Lobby
    "LobbyResult",
    "create_pending_record",
    "initialize_state",
    "join_game",
    "quit_pending",
    "start_game",
    "validate_game_configuration",
    # Service
    "GameService",
    "GameServiceResult",
    "get_game_service",
    "TurnSweeper",
    # Engine
    "GameAction",
    "ProcessResult",
    "MoveAction",
    "BuildAction",
    "EndTurnAction",
    "ResignAction",
    "process_action",
    "build_action_from_payload",
]
