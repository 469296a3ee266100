import logging

from upstash_redis.asyncio import Redis

from app.config import get_settings
from app.services.storage import MemoryStorageAdapter, RedisStorageAdapter, StorageAdapter

logger = logging.getLogger(__name__)

_storage_adapter: StorageAdapter | None = None


def get_storage_adapter() -> StorageAdapter:
    """Get the singleton storage adapter selected by STORAGE_BACKEND.

    Redis is used when configured; otherwise a process-local memory store.
    """
    global _storage_adapter
    if _storage_adapter is None:
        settings = get_settings()
        if settings.STORAGE_BACKEND == "redis":
            logger.info("Initializing Upstash Redis storage")
            _storage_adapter = RedisStorageAdapter(
                Redis(
                    url=settings.UPSTASH_REDIS_REST_URL,
                    token=settings.UPSTASH_REDIS_REST_TOKEN,
                )
            )
            logger.debug("Redis storage using URL: %s", settings.UPSTASH_REDIS_REST_URL)
        else:
            logger.warning("Using in-memory storage; games will not survive a restart")
            _storage_adapter = MemoryStorageAdapter()
    return _storage_adapter


async def close_storage_adapter() -> None:
    """Close the storage adapter and its connections."""
    global _storage_adapter
    if _storage_adapter is not None:
        await _storage_adapter.close()
        _storage_adapter = None
        logger.debug("Storage adapter closed")
