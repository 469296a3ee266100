"""Game record persistence on top of a StorageAdapter."""

import logging

from pydantic import ValidationError

from app.schemas.game_engine import GameRecord, GameStatus, deserialize_record, serialize_record

from .adapters import StorageAdapter, StorageError

logger = logging.getLogger(__name__)

GAME_KEY_PREFIX = "game:"


class CorruptRecord(StorageError):
    """A stored value could not be parsed as a game record."""

    retryable = False


class GameStorage:
    """Reads and writes whole GameRecords under game:<game_id>."""

    def __init__(self, adapter: StorageAdapter):
        self._adapter = adapter

    @staticmethod
    def game_key(game_id: str) -> str:
        return f"{GAME_KEY_PREFIX}{game_id}"

    async def load_game(self, game_id: str) -> GameRecord | None:
        raw = await self._adapter.get(self.game_key(game_id))
        if raw is None:
            logger.debug("Game %s not found in storage", game_id)
            return None
        try:
            return deserialize_record(raw)
        except ValidationError as e:
            logger.error("Stored record for game %s is unreadable: %s", game_id, e)
            raise CorruptRecord(f"Unreadable record for game {game_id}") from e

    async def save_game(self, record: GameRecord) -> None:
        await self._adapter.put(self.game_key(record.game_id), serialize_record(record))
        logger.debug("Game %s saved (status=%s)", record.game_id, record.status.value)

    async def delete_game(self, game_id: str) -> None:
        await self._adapter.delete(self.game_key(game_id))
        logger.info("Game %s deleted", game_id)

    async def list_game_ids(self) -> list[str]:
        keys = await self._adapter.list(GAME_KEY_PREFIX)
        return [key[len(GAME_KEY_PREFIX) :] for key in keys]

    async def list_games(self, status: GameStatus | None = None) -> list[GameRecord]:
        """Load every game, optionally filtered by status.

        Unreadable records are logged and skipped so one bad entry cannot
        hide the rest.
        """
        records: list[GameRecord] = []
        for game_id in await self.list_game_ids():
            try:
                record = await self.load_game(game_id)
            except CorruptRecord:
                continue
            if record is not None and (status is None or record.status == status):
                records.append(record)
        return records
