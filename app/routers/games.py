"""REST endpoints for the game lobby and in-game commands."""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from app.schemas.game_engine import GameStatus
from app.schemas.games import (
    BuildRequest,
    CreateGameRequest,
    EndTurnRequest,
    GameActionResponse,
    GameListResponse,
    JoinGameRequest,
    MoveRequest,
    QuitGameRequest,
    ResignRequest,
)
from app.services.game.engine import ErrorKind, build_action_from_payload, error_kind
from app.services.game.service import GameServiceResult, get_game_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

error_status_map = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DURABILITY: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _respond(
    result: GameServiceResult,
    background_tasks: BackgroundTasks,
    operation: str,
    game_id: str | None = None,
) -> GameActionResponse:
    """Turn a service result into a response, or raise the mapped HTTP error.

    Notifications are queued only for successful results, so a failed write
    is never announced to other clients.
    """
    if not result.success:
        http_status = error_status_map[error_kind(result.error_code)]
        log = logger.error if http_status >= 500 else logger.warning
        log(
            "%s failed for game %s: %s - %s",
            operation,
            game_id,
            result.error_code,
            result.error_message,
        )
        raise HTTPException(
            status_code=http_status,
            detail=result.error_message or f"{operation} failed",
        )

    background_tasks.add_task(get_game_service().broadcast, result)
    return GameActionResponse(
        success=True,
        game=result.record,
        events=result.events,
        slot_index=result.slot_index,
        deferred=result.deferred,
    )


@router.post("", response_model=GameActionResponse, status_code=status.HTTP_201_CREATED)
async def create_game(request: CreateGameRequest, background_tasks: BackgroundTasks):
    """Create a pending game with the caller seated in slot 0.

    A game created without OPEN slots starts immediately.

    Raises:
        HTTPException 400: If the configuration is invalid.
        HTTPException 500: If the game could not be saved.
    """
    logger.info(
        "POST /games - variant: %s, slots: %s",
        request.variant.value,
        [s.value for s in request.slots],
    )
    result = await get_game_service().create_game(
        variant=request.variant,
        creator_name=request.player_name,
        map_layout=request.map_layout,
        slots=request.slots,
        max_turns=request.max_turns,
    )
    return _respond(result, background_tasks, "Create game")


@router.get("", response_model=GameListResponse)
async def list_open_games():
    """List games still waiting for players."""
    return GameListResponse(games=await get_game_service().list_open_games())


@router.get("/{game_id}", response_model=GameActionResponse)
async def get_game(game_id: str, background_tasks: BackgroundTasks):
    """Read a game, including armadas this process dispatched recently."""
    result = await get_game_service().get_game(game_id)
    return _respond(result, background_tasks, "Get game", game_id)


@router.post("/{game_id}/join", response_model=GameActionResponse)
async def join_game(game_id: str, request: JoinGameRequest, background_tasks: BackgroundTasks):
    """Claim an OPEN slot. The game starts once no OPEN slot is left.

    Raises:
        HTTPException 400: If the slot or name is unavailable or the game started.
        HTTPException 404: If the game does not exist.
    """
    logger.info("POST /games/%s/join - slot: %d", game_id, request.slot_index)
    result = await get_game_service().join_game(game_id, request.player_name, request.slot_index)
    return _respond(result, background_tasks, "Join game", game_id)


@router.post("/{game_id}/start", response_model=GameActionResponse)
async def start_game(game_id: str, background_tasks: BackgroundTasks):
    """Start a pending game, filling OPEN slots with AI players."""
    logger.info("POST /games/%s/start", game_id)
    result = await get_game_service().start_game(game_id)
    return _respond(result, background_tasks, "Start game", game_id)


@router.post("/{game_id}/quit", response_model=GameActionResponse)
async def quit_game(game_id: str, request: QuitGameRequest, background_tasks: BackgroundTasks):
    """Leave a pending game. The game is deleted when the last human leaves."""
    logger.info("POST /games/%s/quit - slot: %d", game_id, request.player_slot)
    result = await get_game_service().quit_game(game_id, request.player_slot)
    return _respond(result, background_tasks, "Quit game", game_id)


@router.post("/{game_id}/move", response_model=GameActionResponse)
async def move(game_id: str, request: MoveRequest, background_tasks: BackgroundTasks):
    """Move soldiers to a neighbor, or dispatch an armada.

    With defer_write the new state is held in this process and written by
    the next non-deferred command.
    """
    logger.info(
        "POST /games/%s/move - slot: %d, %d -> %d x%d",
        game_id,
        request.player_slot,
        request.source,
        request.destination,
        request.count,
    )
    action = build_action_from_payload(
        {"action_type": "move", **request.model_dump(exclude={"player_slot", "defer_write"})}
    )
    result = await get_game_service().submit_action(
        game_id, request.player_slot, action, defer_write=request.defer_write
    )
    return _respond(result, background_tasks, "Move", game_id)


@router.post("/{game_id}/build", response_model=GameActionResponse)
async def build(game_id: str, request: BuildRequest, background_tasks: BackgroundTasks):
    """Recruit units or buy a temple upgrade."""
    logger.info(
        "POST /games/%s/build - slot: %d, region: %d, upgrade: %s",
        game_id,
        request.player_slot,
        request.region,
        request.upgrade.value,
    )
    action = build_action_from_payload(
        {"action_type": "build", **request.model_dump(exclude={"player_slot"})}
    )
    result = await get_game_service().submit_action(game_id, request.player_slot, action)
    return _respond(result, background_tasks, "Build", game_id)


@router.post("/{game_id}/end-turn", response_model=GameActionResponse)
async def end_turn(game_id: str, request: EndTurnRequest, background_tasks: BackgroundTasks):
    logger.info("POST /games/%s/end-turn - slot: %d", game_id, request.player_slot)
    action = build_action_from_payload({"action_type": "end_turn"})
    result = await get_game_service().submit_action(game_id, request.player_slot, action)
    return _respond(result, background_tasks, "End turn", game_id)


@router.post("/{game_id}/resign", response_model=GameActionResponse)
async def resign(game_id: str, request: ResignRequest, background_tasks: BackgroundTasks):
    logger.info("POST /games/%s/resign - slot: %d", game_id, request.player_slot)
    action = build_action_from_payload({"action_type": "resign"})
    result = await get_game_service().submit_action(game_id, request.player_slot, action)
    if result.success and result.record and result.record.status == GameStatus.COMPLETED:
        logger.info("Game %s completed after resignation", game_id)
    return _respond(result, background_tasks, "Resign", game_id)
