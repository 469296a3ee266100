"""Game service: the request-facing workflow around the pure engine.

Every operation follows the same order: read the latest known record,
validate and compute, persist (or defer), and only then notify peers.
Nothing here holds a lock; two requests for one game may race, and the
last write wins.
"""

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from app.config import get_settings
from app.dependencies.storage import get_storage_adapter
from app.schemas.game_engine import (
    Armada,
    GameRecord,
    GameState,
    GameStatus,
    GameVariant,
    MapLayout,
    SlotType,
)
from app.services.notifications import GameNotifier, NotificationType, get_notifier
from app.services.storage import (
    GameStorage,
    OptimisticEntityTracker,
    StorageError,
    StorageReconciler,
    get_pending_write_cache,
    merge_tracked_armadas,
)

from .ai import AiDecider, advance_ai_turns, is_ai_turn
from .engine import (
    AnyGameEvent,
    ArmadaDispatched,
    ErrorCode,
    GameAction,
    MoveAction,
    process_action,
)
from .start_game import LobbyResult, create_pending_record, join_game, quit_pending, start_game

logger = logging.getLogger(__name__)


@dataclass
class GameServiceResult:
    """Result of a game service operation.

    `durable` is False when the new record was computed but could not be
    written; such results are failures even though `record` is set.
    """

    success: bool
    record: GameRecord | None = None
    events: list[AnyGameEvent] = field(default_factory=list)
    notification: NotificationType | None = None
    slot_index: int | None = None
    game_id: str | None = None
    durable: bool = True
    deferred: bool = False
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def failure(
        cls, code: str, message: str, record: GameRecord | None = None
    ) -> "GameServiceResult":
        return cls(
            success=False,
            record=record,
            durable=code != ErrorCode.PERSIST_FAILED,
            error_code=code,
            error_message=message,
        )


class GameService:
    """Coordinates lobby operations and commands for games."""

    def __init__(
        self,
        reconciler: StorageReconciler | None = None,
        notifier: GameNotifier | None = None,
        armada_tracker: OptimisticEntityTracker[Armada] | None = None,
        ai_decider: AiDecider | None = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = get_settings()
        self._reconciler = reconciler or StorageReconciler(
            GameStorage(get_storage_adapter()), get_pending_write_cache()
        )
        self._notifier = notifier or get_notifier()
        if armada_tracker is None:
            armada_tracker = OptimisticEntityTracker[Armada](
                grace_seconds=settings.OPTIMISTIC_GRACE_SECONDS
            )
        self._armada_tracker = armada_tracker
        self._ai_decider = ai_decider
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _load(self, game_id: str) -> tuple[GameRecord | None, GameServiceResult | None]:
        try:
            record = await self._reconciler.load(game_id)
        except StorageError as e:
            logger.error("Failed to load game %s: %s", game_id, e)
            return None, GameServiceResult.failure(
                ErrorCode.INTERNAL_ERROR, "Failed to load game"
            )
        if record is None:
            logger.warning("Game not found: %s", game_id)
            return None, GameServiceResult.failure(
                ErrorCode.GAME_NOT_FOUND, f"Game {game_id} not found"
            )
        return record, None

    async def _save(
        self,
        record: GameRecord,
        events: list[AnyGameEvent],
        notification: NotificationType | None,
        slot_index: int | None = None,
        defer: bool = False,
    ) -> GameServiceResult:
        persisted = await self._reconciler.persist(record, defer=defer)
        if not persisted.accepted:
            return GameServiceResult.failure(
                ErrorCode.PERSIST_FAILED,
                persisted.error_message or "Failed to save game",
                record=record,
            )
        return GameServiceResult(
            success=True,
            record=record,
            events=events,
            notification=notification,
            slot_index=slot_index,
            durable=persisted.durable,
            deferred=persisted.deferred,
        )

    def _with_state(self, record: GameRecord, state: GameState) -> GameRecord:
        status = GameStatus.COMPLETED if state.end_result is not None else record.status
        return record.model_copy(
            update={"state": state, "status": status, "last_move_at": self._now_ms()}
        )

    def _lobby_result(self, lobby: LobbyResult) -> GameServiceResult | None:
        if lobby.success:
            return None
        code = lobby.error_code or ErrorCode.INTERNAL_ERROR
        return GameServiceResult.failure(code, lobby.error_message or "Lobby operation failed")

    async def create_game(
        self,
        variant: GameVariant,
        creator_name: str,
        map_layout: MapLayout,
        slots: list[SlotType],
        max_turns: int,
    ) -> GameServiceResult:
        game_id = str(uuid.uuid4())
        try:
            record = create_pending_record(
                game_id, variant, creator_name, map_layout, slots, self._now_ms(), max_turns
            )
        except ValueError as e:
            logger.warning("Invalid game configuration: %s", e)
            return GameServiceResult.failure(ErrorCode.INVALID_CONFIGURATION, str(e))

        result = await self._save(record, [], None, slot_index=0)
        if SlotType.OPEN not in slots and result.success:
            # Nobody else can join, so the game starts right away
            return await self.start_game(game_id)
        return result

    async def get_game(self, game_id: str) -> GameServiceResult:
        record, error = await self._load(game_id)
        if error:
            return error
        return GameServiceResult(
            success=True, record=merge_tracked_armadas(record, self._armada_tracker)
        )

    async def list_open_games(self) -> list[GameRecord]:
        return await self._reconciler.storage.list_games(GameStatus.PENDING)

    async def join_game(self, game_id: str, name: str, slot_index: int) -> GameServiceResult:
        record, error = await self._load(game_id)
        if error:
            return error

        lobby = join_game(record, name, slot_index, self._now_ms())
        if failed := self._lobby_result(lobby):
            return failed

        events: list[AnyGameEvent] = [lobby.started] if lobby.started else []
        notification = (
            NotificationType.GAME_STARTED if lobby.started else NotificationType.PLAYER_JOINED
        )
        record = lobby.record
        if lobby.started:
            record, ai_events = self._run_ai(record)
            events.extend(ai_events)
        return await self._save(record, events, notification, slot_index=slot_index)

    async def start_game(self, game_id: str) -> GameServiceResult:
        record, error = await self._load(game_id)
        if error:
            return error

        lobby = start_game(record, self._now_ms())
        if failed := self._lobby_result(lobby):
            return failed

        record, ai_events = self._run_ai(lobby.record)
        return await self._save(
            record, [lobby.started, *ai_events], NotificationType.GAME_STARTED
        )

    async def quit_game(self, game_id: str, slot_index: int) -> GameServiceResult:
        """Leave a pending game, deleting it when the last human leaves."""
        record, error = await self._load(game_id)
        if error:
            return error

        lobby = quit_pending(record, slot_index, self._now_ms())
        if failed := self._lobby_result(lobby):
            return failed

        if lobby.record is None:
            deleted = await self._reconciler.delete(game_id)
            if not deleted.durable:
                return GameServiceResult.failure(
                    ErrorCode.PERSIST_FAILED, deleted.error_message or "Failed to delete game"
                )
            return GameServiceResult(
                success=True,
                notification=NotificationType.PLAYER_LEFT,
                slot_index=slot_index,
                game_id=game_id,
            )
        return await self._save(
            lobby.record, [], NotificationType.PLAYER_LEFT, slot_index=slot_index
        )

    async def submit_action(
        self,
        game_id: str,
        slot_index: int,
        action: GameAction,
        defer_write: bool = False,
    ) -> GameServiceResult:
        """Apply one command to an active game and persist the outcome.

        Only moves may defer their write. Any other command writes through,
        which also supersedes a pending deferred record for the game.
        """
        record, error = await self._load(game_id)
        if error:
            return error
        if record.status == GameStatus.COMPLETED:
            return GameServiceResult.failure(ErrorCode.GAME_COMPLETED, "Game has already finished")
        if record.status != GameStatus.ACTIVE or record.state is None:
            return GameServiceResult.failure(ErrorCode.GAME_NOT_ACTIVE, "Game has not started yet")

        result = process_action(record.state, action, slot_index)
        if not result.success or result.state is None:
            return GameServiceResult.failure(
                result.error_code or ErrorCode.INTERNAL_ERROR,
                result.error_message or "Action rejected",
            )

        record = self._with_state(record, result.state)
        record, ai_events = self._run_ai(record)
        events = [*result.events, *ai_events]

        defer = defer_write and isinstance(action, MoveAction) and record.status == GameStatus.ACTIVE
        notification = (
            NotificationType.GAME_ENDED
            if record.status == GameStatus.COMPLETED
            else NotificationType.GAME_UPDATE
        )
        saved = await self._save(record, events, notification, slot_index=slot_index, defer=defer)
        if saved.success:
            self._track_armadas(game_id, record, events)
        return saved

    def _track_armadas(
        self, game_id: str, record: GameRecord, events: list[AnyGameEvent]
    ) -> None:
        """Keep the armada tracker in step with an accepted state.

        New dispatches are tracked. Tracked armadas missing from the state
        landed or were recalled and are dropped.
        """
        armadas = record.state.armadas if record.state is not None else []
        self._armada_tracker.retain(game_id, (a.id for a in armadas))
        dispatched = {e.armada_id for e in events if isinstance(e, ArmadaDispatched)}
        for armada in armadas:
            if armada.id in dispatched:
                self._armada_tracker.track(game_id, armada)

    def _run_ai(self, record: GameRecord) -> tuple[GameRecord, list[AnyGameEvent]]:
        if record.state is None or not is_ai_turn(record.state):
            return record, []
        state, events = advance_ai_turns(record.state, self._ai_decider)
        return self._with_state(record, state), events

    async def sweep_ai_turns(self) -> int:
        """Advance every active game that is waiting on an AI player.

        Returns:
            Number of games advanced.
        """
        await self._reconciler.flush_expired()
        try:
            records = await self._reconciler.storage.list_games(GameStatus.ACTIVE)
        except StorageError as e:
            logger.error("AI sweep could not list games: %s", e)
            return 0

        advanced = 0
        for stored in records:
            # A deferred write in this process is newer than the store copy
            try:
                record = await self._reconciler.load(stored.game_id) or stored
            except StorageError as e:
                logger.error("AI sweep could not load game %s: %s", stored.game_id, e)
                continue
            if record.state is None or not is_ai_turn(record.state):
                continue
            record, events = self._run_ai(record)
            notification = (
                NotificationType.GAME_ENDED
                if record.status == GameStatus.COMPLETED
                else NotificationType.GAME_UPDATE
            )
            saved = await self._save(record, events, notification)
            if saved.success:
                self._track_armadas(record.game_id, record, events)
                advanced += 1
                await self.broadcast(saved)
        if advanced:
            logger.info("AI sweep advanced %d games", advanced)
        return advanced

    async def broadcast(self, result: GameServiceResult) -> None:
        """Notify connected clients about a successful operation.

        Failed or unsaved results are never broadcast. A deleted game has no
        record left, so peers only get the slot that left.
        """
        if not result.success or result.notification is None:
            return
        if result.record is not None:
            await self._notifier.notify(
                result.record.game_id,
                result.notification,
                game_state=result.record.model_dump(mode="json"),
            )
        elif result.game_id is not None:
            await self._notifier.notify(
                result.game_id,
                result.notification,
                data={"slot_index": result.slot_index, "game_deleted": True},
            )


# Singleton instance
_game_service: GameService | None = None


def get_game_service() -> GameService:
    """Get the singleton GameService instance."""
    global _game_service
    if _game_service is None:
        _game_service = GameService()
    return _game_service


def reset_game_service() -> None:
    """Drop the singleton so the next call rebuilds it from settings."""
    global _game_service
    _game_service = None
