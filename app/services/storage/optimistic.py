"""Optimistic tracking of freshly created entities.

The store propagates writes with a lag of several seconds, so a read taken
right after an accepted command can still lack what that command created
(for example a newly dispatched armada). The tracker remembers such
entities with their creation time and merges them into stale snapshots:

- an entity the snapshot already contains is confirmed and forgotten
- an entity older than the grace window is forgotten, so lost writes
  cannot linger forever
- anything else is appended to the snapshot

Expired entries of every game are pruned whenever the tracker is used.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from app.schemas.game_engine import Armada, GameRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class _Tracked[T]:
    entity: T
    created_at: float


class OptimisticEntityTracker[T]:
    def __init__(
        self,
        grace_seconds: float = 10.0,
        clock: Clock = time.time,
        key: Callable[[T], str] = lambda entity: entity.id,
    ):
        self._grace = grace_seconds
        self._clock = clock
        self._key = key
        self._entries: dict[str, dict[str, _Tracked[T]]] = {}

    def __len__(self) -> int:
        """Number of games with tracked entities."""
        return len(self._entries)

    def _expired(self, tracked: _Tracked[T], now: float) -> bool:
        return now - tracked.created_at > self._grace

    def _prune(self, game_id: str, now: float) -> dict[str, _Tracked[T]]:
        for gid in list(self._entries):
            entries = {
                eid: t for eid, t in self._entries[gid].items() if not self._expired(t, now)
            }
            if entries:
                self._entries[gid] = entries
            else:
                del self._entries[gid]
        return dict(self._entries.get(game_id, {}))

    def track(self, game_id: str, entity: T) -> None:
        now = self._clock()
        entries = self._prune(game_id, now)
        entries[self._key(entity)] = _Tracked(entity=entity, created_at=now)
        self._entries[game_id] = entries
        logger.debug("Tracking entity %s for game %s", self._key(entity), game_id)

    def tracked(self, game_id: str) -> list[T]:
        return [t.entity for t in self._prune(game_id, self._clock()).values()]

    def merge(self, game_id: str, server_entities: list[T]) -> list[T]:
        """Union a store snapshot with tracked entities it does not show yet."""
        now = self._clock()
        entries = self._prune(game_id, now)
        server_ids = {self._key(e) for e in server_entities}

        merged = list(server_entities)
        pending: dict[str, _Tracked[T]] = {}
        for entity_id, tracked in entries.items():
            if entity_id in server_ids:
                logger.debug("Entity %s confirmed by store for game %s", entity_id, game_id)
                continue
            merged.append(tracked.entity)
            pending[entity_id] = tracked

        if pending:
            self._entries[game_id] = pending
        else:
            self._entries.pop(game_id, None)
        return merged

    def retain(self, game_id: str, entity_ids: Iterable[str]) -> None:
        """Stop tracking entities an authoritative state no longer has.

        Called with the ids present after an accepted command; anything else
        tracked for the game has landed or left play and must not
        be merged back in.
        """
        keep = set(entity_ids)
        entries = self._prune(game_id, self._clock())
        dropped = [eid for eid in entries if eid not in keep]
        for entity_id in dropped:
            del entries[entity_id]
            logger.debug("Entity %s removed from game %s, no longer tracked", entity_id, game_id)
        if entries:
            self._entries[game_id] = entries
        else:
            self._entries.pop(game_id, None)

    def forget(self, game_id: str) -> None:
        self._entries.pop(game_id, None)


def merge_tracked_armadas(
    record: GameRecord, tracker: OptimisticEntityTracker[Armada]
) -> GameRecord:
    """Record with any tracked armadas the stored state is missing."""
    if record.state is None:
        return record
    armadas = tracker.merge(record.game_id, record.state.armadas)
    if len(armadas) == len(record.state.armadas):
        return record
    logger.info(
        "Merged %d optimistic armadas into game %s",
        len(armadas) - len(record.state.armadas),
        record.game_id,
    )
    return record.model_copy(
        update={"state": record.state.model_copy(update={"armadas": armadas})}
    )
