"""Storage reconciler between the game service and the key-value store.

Reads prefer a pending (deferred) record held by this process over the
store. Writes either go straight to the store or, when the caller defers,
into the pending cache. Held records that outlive their TTL are written on
the next load or persist, so an accepted deferred move is never dropped.
A failed store write is reported through PersistResult rather than raised,
so callers can tell "computed but not saved" apart from "rejected".

There is no lock around read-modify-write. Concurrent commands for one game
race and the last write wins; the optimistic armada merge covers the window
where a stale read would hide an accepted dispatch.
"""

import logging
from dataclasses import dataclass

from app.schemas.game_engine import GameRecord

from .adapters import StorageError
from .game_storage import GameStorage
from .pending import PendingWriteCache

logger = logging.getLogger(__name__)


@dataclass
class PersistResult:
    """Outcome of persisting a game record."""

    durable: bool
    deferred: bool = False
    error_message: str | None = None

    @property
    def accepted(self) -> bool:
        """True when the caller may report success."""
        return self.durable or self.deferred

    @classmethod
    def written(cls) -> "PersistResult":
        return cls(durable=True)

    @classmethod
    def held(cls) -> "PersistResult":
        return cls(durable=False, deferred=True)

    @classmethod
    def failed(cls, message: str) -> "PersistResult":
        return cls(durable=False, error_message=message)


class StorageReconciler:
    def __init__(self, storage: GameStorage, pending: PendingWriteCache):
        self._storage = storage
        self._pending = pending

    @property
    def storage(self) -> GameStorage:
        return self._storage

    async def flush_expired(self) -> int:
        """Write every held record that outlived the pending TTL.

        A failed write keeps the entry, so the next access tries again.

        Returns:
            Number of records written.
        """
        flushed = 0
        for game_id in self._pending.expired():
            logger.warning("Pending write for game %s outlived its TTL, forcing a flush", game_id)
            try:
                if await self._pending.flush(game_id, self._storage):
                    flushed += 1
            except StorageError as e:
                logger.error("Forced flush failed for game %s: %s", game_id, e)
        return flushed

    async def load(self, game_id: str) -> GameRecord | None:
        """Latest known record: pending write first, then the store.

        Raises:
            StorageError: If the store read fails.
        """
        await self.flush_expired()
        pending = self._pending.get(game_id)
        if pending is not None:
            logger.debug("Serving game %s from pending write cache", game_id)
            return pending
        return await self._storage.load_game(game_id)

    async def persist(self, record: GameRecord, defer: bool = False) -> PersistResult:
        """Save a record, or hold it in the pending cache when deferring."""
        await self.flush_expired()
        if defer:
            self._pending.set(record)
            logger.info("Deferred write for game %s", record.game_id)
            return PersistResult.held()

        try:
            await self._storage.save_game(record)
        except StorageError as e:
            logger.exception("Failed to persist game %s: %s", record.game_id, e)
            return PersistResult.failed(f"Failed to save game {record.game_id}")

        self._pending.clear(record.game_id)
        return PersistResult.written()

    async def flush(self, game_id: str) -> PersistResult:
        """Write any pending record for a game to the store."""
        try:
            await self._pending.flush(game_id, self._storage)
        except StorageError as e:
            logger.exception("Failed to flush pending write for game %s: %s", game_id, e)
            return PersistResult.failed(f"Failed to flush game {game_id}")
        return PersistResult.written()

    async def delete(self, game_id: str) -> PersistResult:
        self._pending.clear(game_id)
        try:
            await self._storage.delete_game(game_id)
        except StorageError as e:
            logger.exception("Failed to delete game %s: %s", game_id, e)
            return PersistResult.failed(f"Failed to delete game {game_id}")
        return PersistResult.written()
