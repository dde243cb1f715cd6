import logging
from collections import Counter
from typing import List, Optional, Sequence, Set, Tuple

from .config import settings
from .models import Card, CardRole, GameSetup, SessionStatus, SessionSummary
from .signals import Signal, SignalBus

logger = logging.getLogger(__name__)


class GameSession:
    """Flip/match state machine for one board.

    All mutation happens on the event loop thread. Resolution of a flipped pair
    is deferred through ``scheduler.call_later(delay, callback, *args)``, the
    same signature as an asyncio event loop. Each ``start()`` bumps
    ``generation`` so callbacks scheduled for an earlier game drop themselves.
    """

    def __init__(self, scheduler, bus: Optional[SignalBus] = None):
        self.scheduler = scheduler
        self.bus = bus or SignalBus()
        self.deck: List[Card] = []
        self.flipped_indices: List[int] = []
        self.matched_entry_ids: Set[str] = set()
        self.score = 0
        self.elapsed_seconds = 0
        self.status = SessionStatus.NOT_STARTED
        self.pending_resolution: Optional[Tuple[int, int]] = None
        self.setup: Optional[GameSetup] = None
        self.summary: Optional[SessionSummary] = None
        self.generation = 0

    @property
    def total_pairs(self) -> int:
        return len(self.deck) // 2

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    def unmatched_entry_ids(self) -> List[str]:
        return sorted(
            {
                card.entry_id
                for card in self.deck
                if card.entry_id not in self.matched_entry_ids
            }
        )

    def start(self, deck: Sequence[Card], setup: GameSetup):
        """Begins a game on ``deck``; a call mid-game abandons the old one."""
        _check_deck(deck)
        if self.status in (SessionStatus.RUNNING, SessionStatus.RESOLVING):
            logger.info(f"Restarting game {self.generation} before completion")

        self.generation += 1
        self.deck = list(deck)
        self.setup = setup
        self.flipped_indices = []
        self.matched_entry_ids = set()
        self.score = 0
        self.elapsed_seconds = 0
        self.pending_resolution = None
        self.summary = None
        self.status = SessionStatus.RUNNING
        logger.info(
            f"Game {self.generation} started with {self.total_pairs} pairs "
            f"[List: {setup.list_id}]"
        )

    def request_flip(self, position: int) -> bool:
        """Turns a card face up. Returns False when the request is ignored."""
        if self.status != SessionStatus.RUNNING:
            return False
        if len(self.flipped_indices) == 2 or position in self.flipped_indices:
            return False
        if not 0 <= position < len(self.deck):
            return False
        if self.deck[position].entry_id in self.matched_entry_ids:
            return False

        self.flipped_indices.append(position)
        self.bus.emit(Signal.FLIPPED, position)

        if len(self.flipped_indices) == 2:
            first, second = self.flipped_indices
            self.pending_resolution = (first, second)
            self.status = SessionStatus.RESOLVING
            if self.deck[first].entry_id == self.deck[second].entry_id:
                delay_ms = settings.MATCH_DELAY_MS
            else:
                delay_ms = settings.MISMATCH_DELAY_MS
            self.scheduler.call_later(
                delay_ms / 1000, self._resolve, self.generation, (first, second)
            )
        return True

    def tick(self):
        # The clock keeps running while a pair is being resolved
        if self.status in (SessionStatus.RUNNING, SessionStatus.RESOLVING):
            self.elapsed_seconds += 1

    def _resolve(self, generation: int, positions: Tuple[int, int]):
        if generation != self.generation or self.pending_resolution != positions:
            logger.debug(f"Dropping stale resolution {positions} from game {generation}")
            return

        first, second = positions
        entry_id = self.deck[first].entry_id
        self.flipped_indices = []
        self.pending_resolution = None

        if entry_id != self.deck[second].entry_id:
            self.status = SessionStatus.RUNNING
            self.bus.emit(Signal.MISMATCHED)
            return

        self.matched_entry_ids.add(entry_id)
        self.score += settings.POINTS_PER_MATCH
        self.bus.emit(Signal.MATCHED, entry_id)

        if len(self.matched_entry_ids) == self.total_pairs:
            self.status = SessionStatus.COMPLETE
            self.summary = self._summarize()
            logger.info(
                f"Game {self.generation} complete: score {self.score} "
                f"in {self.elapsed_seconds}s"
            )
            self.bus.emit(Signal.COMPLETED, self.summary)
        else:
            self.status = SessionStatus.RUNNING

    def _summarize(self) -> SessionSummary:
        return SessionSummary(
            student_name=self.setup.student_name,
            student_class=self.setup.student_class,
            score=self.score,
            elapsed_seconds=self.elapsed_seconds,
            list_id=self.setup.list_id,
            difficulty=self.setup.difficulty,
            mode=self.setup.mode,
        )


def _check_deck(deck: Sequence[Card]):
    if not deck or len(deck) % 2:
        raise ValueError(f"A deck needs a positive even number of cards, got {len(deck)}")
    roles = Counter((card.entry_id, card.role) for card in deck)
    entry_ids = {card.entry_id for card in deck}
    for entry_id in entry_ids:
        if roles[(entry_id, CardRole.TERM)] != 1 or roles[(entry_id, CardRole.MATCH)] != 1:
            raise ValueError(f"Entry {entry_id!r} must have exactly one term and one match card")
