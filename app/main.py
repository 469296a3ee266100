import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.dependencies.storage import close_storage_adapter, get_storage_adapter
from app.routers import games
from app.services.game.service import reset_game_service
from app.services.game.sweeper import TurnSweeper
from app.services.notifications import close_notifier, get_notifier

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting World Conflict API")
    logger.debug("Debug mode: %s", settings.DEBUG)

    get_storage_adapter()
    get_notifier()

    # Advance AI turns that no request is driving
    sweeper = TurnSweeper()
    await sweeper.start()

    yield

    # Shutdown: stop the sweeper, then close outbound clients
    logger.info("Shutting down World Conflict API")
    await sweeper.stop()
    await close_notifier()
    await close_storage_adapter()
    reset_game_service()
    logger.info("Sweeper, notifier, and storage cleanup complete")


app = FastAPI(
    title="World Conflict API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.debug("CORS configured with origins: %s", settings.CORS_ORIGINS)

app.include_router(games.router, prefix="/api/v1")
logger.debug("Routers registered: /api/v1/games")


@app.get("/")
def root():
    return {"message": "World Conflict API"}


@app.get("/health")
def health():
    return {"status": "healthy"}
