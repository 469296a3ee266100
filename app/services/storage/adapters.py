"""Key-value storage adapters.

The game core only depends on StorageAdapter: whole-value get/put/delete and
prefix listing, with no transactions or partial updates. Which concrete
adapter backs it is decided at startup from configuration.
"""

import logging
from abc import ABC, abstractmethod

from upstash_redis.asyncio import Redis

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage failures."""

    retryable: bool = True


class StorageUnavailable(StorageError):
    """The backing store could not be reached or rejected the request."""


class StorageAdapter(ABC):
    """Whole-value key-value store contract."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Replace the value stored under key.

        Raises:
            StorageError: If the backend fails.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Deleting a missing key is not an error."""

    @abstractmethod
    async def list(self, prefix: str) -> list[str]:
        """All keys starting with prefix."""

    async def close(self) -> None:
        return None


class MemoryStorageAdapter(StorageAdapter):
    """Process-local store for development and tests.

    Data lives only as long as the instance; nothing is shared between
    processes.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class RedisStorageAdapter(StorageAdapter):
    """Upstash Redis store over its REST API."""

    def __init__(self, redis_client: Redis):
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(key)
        except Exception as e:
            logger.error("Redis GET failed for %s: %s", key, e)
            raise StorageUnavailable(f"Failed to read {key}") from e

    async def put(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value)
        except Exception as e:
            logger.error("Redis SET failed for %s: %s", key, e)
            raise StorageUnavailable(f"Failed to write {key}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except Exception as e:
            logger.error("Redis DEL failed for %s: %s", key, e)
            raise StorageUnavailable(f"Failed to delete {key}") from e

    async def list(self, prefix: str) -> list[str]:
        try:
            keys = await self._redis.keys(f"{prefix}*")
        except Exception as e:
            logger.error("Redis KEYS failed for prefix %s: %s", prefix, e)
            raise StorageUnavailable(f"Failed to list {prefix}*") from e
        return sorted(keys)

    async def close(self) -> None:
        logger.info("Closing Upstash Redis client")
        await self._redis.close()
