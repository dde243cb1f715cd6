import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional, Set

from .deck import DeckBuilder
from .hints import HintGate
from .models import (
    CardView,
    Difficulty,
    GameMode,
    GameSetup,
    GameView,
    SessionSummary,
    SubmitStatus,
)
from .reporter import ResultReporter
from .session import GameSession
from .signals import Signal, SignalBus
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)


class MatchGame:
    """Driver-facing facade wiring deck building, session, hints and reporting."""

    def __init__(
        self,
        catalog: VocabularyManager,
        scheduler,
        get_hint: Callable[[str, str], Awaitable[str]],
        reporter: Optional[ResultReporter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.bus = SignalBus()
        self.deck_builder = DeckBuilder(catalog)
        self.session = GameSession(scheduler, bus=self.bus)
        self.hints = HintGate(catalog, get_hint, bus=self.bus, clock=clock)
        self.reporter = reporter
        self.started_at = datetime.now()
        self._tasks: Set[asyncio.Task] = set()
        self.bus.connect(Signal.COMPLETED, self._on_completed)

    @property
    def submit_status(self) -> SubmitStatus:
        return self.reporter.status if self.reporter else SubmitStatus.IDLE

    def start(
        self,
        list_id: str,
        mode: GameMode,
        difficulty: Difficulty,
        student_name: str = "",
        student_class: str = "",
        rng_seed: Optional[int] = None,
    ):
        # Deck errors surface here, before the running game is touched
        deck = self.deck_builder.build_deck(list_id, mode, difficulty, rng_seed)
        setup = GameSetup(
            list_id=list_id,
            mode=mode,
            difficulty=difficulty,
            student_name=student_name,
            student_class=student_class,
        )
        self.session.start(deck, setup)
        self.started_at = datetime.now()
        self.hints.reset()
        if self.reporter:
            self.reporter.reset()

    def request_flip(self, position: int) -> bool:
        return self.session.request_flip(position)

    def tick(self):
        self.session.tick()

    def request_hint(self) -> bool:
        """Starts a hint fetch in the background. False when every pair is matched."""
        if not self.session.unmatched_entry_ids():
            return False
        self._spawn(self.hints.request_hint(self.session))
        return True

    async def run_clock(self, interval: float = 1.0):
        """Ticks once per interval until the current game completes."""
        generation = self.session.generation
        while generation == self.session.generation and not self.session.is_complete:
            await asyncio.sleep(interval)
            if generation == self.session.generation:
                self.tick()

    async def close(self):
        """Waits for background hint/report tasks, then releases the reporter client."""
        if self._tasks:
            await asyncio.wait(list(self._tasks))
        if self.reporter:
            await self.reporter.close()

    def _on_completed(self, summary: SessionSummary):
        if self.reporter:
            # Round is taken now; the task may only start after a restart
            self._spawn(self.reporter.submit(summary, self.reporter.current_round))

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def view(self) -> GameView:
        session = self.session
        cards = []
        for position, card in enumerate(session.deck):
            is_matched = card.entry_id in session.matched_entry_ids
            is_face_up = is_matched or position in session.flipped_indices
            cards.append(
                CardView(
                    position=position,
                    role=card.role,
                    is_face_up=is_face_up,
                    is_matched=is_matched,
                    display_text=card.display_text if is_face_up else None,
                    is_right_to_left_script=card.is_right_to_left_script,
                )
            )
        return GameView(
            status=session.status,
            score=session.score,
            elapsed_seconds=session.elapsed_seconds,
            total_pairs=session.total_pairs,
            matched_entry_ids=sorted(session.matched_entry_ids),
            flipped_positions=list(session.flipped_indices),
            pending_resolution=session.pending_resolution,
            cards=cards,
            submit_status=self.submit_status,
        )
