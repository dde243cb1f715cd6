import asyncio
import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI

from .config import settings
from .database import init_db
from .globals import games, hint_client, vocab_manager
from .log_handler import SQLiteHandler
from .router import clock_tasks, closing_tasks, router


# --- Logging Setup ---
def setup_logging():
    logger = logging.getLogger("vocabmatch")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if settings.LOG_TO_DB:
        init_db()
        db_handler = SQLiteHandler()
        db_handler.setLevel(logging.INFO)
        db_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(db_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    vocab_manager.load_all()
    yield
    for task in clock_tasks.values():
        task.cancel()
    clock_tasks.clear()
    for game in list(games.values()):
        await game.close()
    games.clear()
    if closing_tasks:
        await asyncio.wait(list(closing_tasks))
    await hint_client.close()


# --- App Factory ---
def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.include_router(router)

    return app
