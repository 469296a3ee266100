"""Best-effort push of game updates to the WebSocket relay.

The relay accepts POST {NOTIFY_URL}/notify with a JSON body:

    {"gameId": ..., "message": {"type": ..., "gameState" | "data": ..., "timestamp": ...}}

Delivery is fire-and-forget. A slow or failing relay is logged and
ignored; it never fails the command that triggered the notification.
"""

import logging
import time
from enum import Enum
from typing import Any

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    GAME_UPDATE = "gameUpdate"
    GAME_STARTED = "gameStarted"
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"
    GAME_ENDED = "gameEnded"


class NotificationError(Exception):
    """The relay could not be reached or rejected the message."""


class GameNotifier:
    def __init__(
        self,
        base_url: str | None,
        timeout_seconds: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout_seconds
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._base_url is not None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def _post(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._get_client().post(
                f"{self._base_url}/notify", json=payload, timeout=self._timeout
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Relay unreachable: {e}") from e
        if response.is_error:
            raise NotificationError(f"Relay answered {response.status_code}")

    async def notify(
        self,
        game_id: str,
        message_type: NotificationType,
        game_state: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send one message to the relay.

        Returns:
            True if the relay accepted it, False if it was skipped or failed.
        """
        if not self.enabled:
            logger.debug("Notifications disabled, skipping %s for game %s", message_type.value, game_id)
            return False

        message: dict[str, Any] = {
            "type": message_type.value,
            "timestamp": int(time.time() * 1000),
        }
        if game_state is not None:
            message["gameState"] = game_state
        if data is not None:
            message["data"] = data

        try:
            await self._post({"gameId": game_id, "message": message})
        except NotificationError as e:
            logger.warning(
                "Notification %s for game %s failed: %s", message_type.value, game_id, e
            )
            return False
        except Exception as e:
            logger.warning(
                "Unexpected error sending %s for game %s: %s", message_type.value, game_id, e
            )
            return False

        logger.debug("Notification %s sent for game %s", message_type.value, game_id)
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


_notifier: GameNotifier | None = None


def get_notifier() -> GameNotifier:
    """Get the singleton notifier configured from settings."""
    global _notifier
    if _notifier is None:
        settings = get_settings()
        _notifier = GameNotifier(settings.NOTIFY_URL, settings.NOTIFY_TIMEOUT_SECONDS)
        logger.info("Notifier initialized (enabled=%s)", _notifier.enabled)
    return _notifier


async def close_notifier() -> None:
    global _notifier
    if _notifier is not None:
        await _notifier.close()
        _notifier = None
