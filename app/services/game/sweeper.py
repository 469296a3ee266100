"""Periodic advancement of AI turns that no request is driving."""

import asyncio
import logging

from app.config import get_settings

from .service import GameService, get_game_service

logger = logging.getLogger(__name__)


class TurnSweeper:
    """Runs GameService.sweep_ai_turns on a fixed interval."""

    def __init__(self, service: GameService | None = None, interval_seconds: float | None = None):
        self._service = service
        self._interval = (
            interval_seconds
            if interval_seconds is not None
            else get_settings().AI_SWEEP_INTERVAL_SECONDS
        )
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        """Start the sweep loop. An interval of 0 disables it."""
        if self._task is not None:
            logger.warning("Turn sweeper already running")
            return
        if self._interval <= 0:
            logger.info("Turn sweeper disabled")
            return

        service = self._service or get_game_service()

        async def sweep_loop():
            logger.info("Starting turn sweeper with interval %ss", self._interval)
            while True:
                try:
                    await asyncio.sleep(self._interval)
                    await service.sweep_ai_turns()
                except asyncio.CancelledError:
                    logger.info("Turn sweeper cancelled")
                    break
                except Exception as e:
                    logger.error("Error in turn sweeper: %s", e)

        self._task = asyncio.create_task(sweep_loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Turn sweeper stopped")
