import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional, Set

from fastapi import APIRouter, Cookie, Depends, Form, Response
from fastapi.responses import JSONResponse

from .config import settings
from .errors import InsufficientEntries, UnknownVocabularyList
from .game import MatchGame
from .globals import games, hint_client, vocab_manager
from .models import Difficulty, GameMode
from .reporter import ResultReporter

logger = logging.getLogger(__name__)

router = APIRouter()

clock_tasks: Dict[str, asyncio.Task] = {}
closing_tasks: Set[asyncio.Task] = set()


# --- Dependencies ---
def get_game_id(
    game_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return game_id


def _is_expired(game: MatchGame) -> bool:
    return datetime.now() - game.started_at > timedelta(
        minutes=settings.SESSION_TIMEOUT_MINUTES
    )


def get_active_game(game_id: Optional[str]) -> Optional[MatchGame]:
    if not game_id or game_id not in games:
        return None
    game = games[game_id]
    if _is_expired(game):
        _discard(game_id)
        return None
    return game


def sweep_expired_games() -> int:
    expired = [game_id for game_id, game in games.items() if _is_expired(game)]
    for game_id in expired:
        _discard(game_id)
    if expired:
        logger.info(f"Discarded {len(expired)} expired games")
    return len(expired)


def _discard(game_id: str):
    game = games.pop(game_id, None)
    task = clock_tasks.pop(game_id, None)
    if task is not None:
        task.cancel()
    if game is not None:
        closing = asyncio.ensure_future(game.close())
        closing_tasks.add(closing)
        closing.add_done_callback(closing_tasks.discard)


def _invalid_session():
    return JSONResponse({"error": "Session invalid"}, status_code=401)


# --- Routes ---
@router.get("/api/lists")
async def get_lists():
    return vocab_manager.get_topics()


@router.post("/api/games")
async def start_game(
    list_id: str = Form(...),
    mode: GameMode = Form(GameMode.ENGLISH_TO_TRANSLATION),
    difficulty: Difficulty = Form(Difficulty.EASY),
    student_name: str = Form(""),
    student_class: str = Form(""),
    game_id: Optional[str] = Depends(get_game_id),
):
    sweep_expired_games()
    game = get_active_game(game_id)
    if game is None:
        game_id = str(uuid.uuid4())
        game = MatchGame(
            vocab_manager,
            asyncio.get_running_loop(),
            hint_client.get_hint,
            reporter=ResultReporter(),
        )

    try:
        game.start(list_id, mode, difficulty, student_name, student_class)
    except UnknownVocabularyList as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except InsufficientEntries as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    games[game_id] = game
    old_clock = clock_tasks.pop(game_id, None)
    if old_clock is not None:
        old_clock.cancel()
    clock_tasks[game_id] = asyncio.create_task(game.run_clock())

    logger.info(
        f"New game: {game_id} [List: {list_id}, Mode: {mode.value}, "
        f"Difficulty: {difficulty.value}]"
    )

    response = JSONResponse(game.view().model_dump(mode="json"))
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=game_id,
        httponly=True,
        samesite="Lax",
    )
    return response


@router.get("/api/game")
async def get_game_state(game_id: Optional[str] = Depends(get_game_id)):
    game = get_active_game(game_id)
    if not game:
        return _invalid_session()
    return game.view()


@router.post("/api/game/flip")
async def flip_card(
    position: int = Form(...), game_id: Optional[str] = Depends(get_game_id)
):
    game = get_active_game(game_id)
    if not game:
        return _invalid_session()
    accepted = game.request_flip(position)
    return {"accepted": accepted, "game": game.view()}


@router.post("/api/game/hint")
async def request_hint(game_id: Optional[str] = Depends(get_game_id)):
    game = get_active_game(game_id)
    if not game:
        return _invalid_session()
    return {"dispatched": game.request_hint()}


@router.get("/api/game/hint")
async def get_hint_state(game_id: Optional[str] = Depends(get_game_id)):
    game = get_active_game(game_id)
    if not game:
        return _invalid_session()
    return game.hints.state


@router.post("/api/reset")
async def reset_game(response: Response, game_id: Optional[str] = Depends(get_game_id)):
    if game_id:
        _discard(game_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}
