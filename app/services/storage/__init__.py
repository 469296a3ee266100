"""Storage layer: adapters, game records, pending writes and optimistic merge."""

from .adapters import (
    MemoryStorageAdapter,
    RedisStorageAdapter,
    StorageAdapter,
    StorageError,
    StorageUnavailable,
)
from .game_storage import CorruptRecord, GameStorage
from .optimistic import OptimisticEntityTracker, merge_tracked_armadas
from .pending import PendingWriteCache, get_pending_write_cache
from .reconciler import PersistResult, StorageReconciler

__all__ = [
    "StorageAdapter",
    "MemoryStorageAdapter",
    "RedisStorageAdapter",
    "StorageError",
    "StorageUnavailable",
    "CorruptRecord",
    "GameStorage",
    "PendingWriteCache",
    "get_pending_write_cache",
    "PersistResult",
    "StorageReconciler",
    "OptimisticEntityTracker",
    "merge_tracked_armadas",
]
