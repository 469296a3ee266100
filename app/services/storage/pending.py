"""Process-local cache of game records whose store write was deferred.

A player making several moves in one turn can ask for the write to be held
back. Later reads in the same process must see the held record rather than
a stale store copy. An entry older than the TTL is due: the reconciler
writes it to the store on its next access and only then drops it. There is
no background timer beyond the AI sweep, which also flushes due entries.

This is an optimisation only. A request served by another process never
sees these entries.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from app.config import get_settings
from app.schemas.game_engine import GameRecord

from .game_storage import GameStorage

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class _PendingEntry:
    record: GameRecord
    stored_at: float


class PendingWriteCache:
    def __init__(self, ttl_seconds: float = 60.0, clock: Clock = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _PendingEntry] = {}

    def get(self, game_id: str) -> GameRecord | None:
        """Held record for a game, due or not."""
        entry = self._entries.get(game_id)
        return entry.record if entry else None

    def set(self, record: GameRecord) -> None:
        self._entries[record.game_id] = _PendingEntry(record=record, stored_at=self._clock())
        logger.debug("Pending write cached for game %s", record.game_id)

    def clear(self, game_id: str) -> None:
        if self._entries.pop(game_id, None) is not None:
            logger.debug("Pending write cleared for game %s", game_id)

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._entries

    def expired(self) -> list[str]:
        """Games whose held record is older than the TTL and must be written."""
        now = self._clock()
        return [gid for gid, e in self._entries.items() if now - e.stored_at > self._ttl]

    async def flush(self, game_id: str, storage: GameStorage) -> bool:
        """Write a pending record to the store.

        The entry is cleared only after the write succeeds, and only if no
        newer record was held for the game meanwhile.

        Returns:
            True if there was something to flush.

        Raises:
            StorageError: If the write fails; the entry is kept.
        """
        entry = self._entries.get(game_id)
        if entry is None:
            return False
        await storage.save_game(entry.record)
        if self._entries.get(game_id) is entry:
            del self._entries[game_id]
        logger.info("Pending write flushed for game %s", game_id)
        return True


_pending_cache: PendingWriteCache | None = None


def get_pending_write_cache() -> PendingWriteCache:
    """Get the process-wide pending write cache."""
    global _pending_cache
    if _pending_cache is None:
        _pending_cache = PendingWriteCache(ttl_seconds=get_settings().PENDING_WRITE_TTL_SECONDS)
    return _pending_cache
