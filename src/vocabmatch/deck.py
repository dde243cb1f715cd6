import logging
import random
from typing import List, Optional

from .config import settings
from .errors import InsufficientEntries
from .models import Card, CardRole, Difficulty, GameMode, VocabularyEntry
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)


def word_count_for(difficulty: Difficulty) -> int:
    return settings.WORD_COUNTS[Difficulty(difficulty).value]


def make_pair(entry: VocabularyEntry, mode: GameMode) -> List[Card]:
    """Expands one entry into its term card and its match card."""
    is_translation = mode == GameMode.ENGLISH_TO_TRANSLATION
    return [
        Card(
            card_id=f"{entry.id}-term",
            entry_id=entry.id,
            display_text=entry.term,
            role=CardRole.TERM,
        ),
        Card(
            card_id=f"{entry.id}-match",
            entry_id=entry.id,
            display_text=(
                entry.meaning_translation if is_translation else entry.meaning_definition
            ),
            role=CardRole.MATCH,
            is_right_to_left_script=is_translation,
        ),
    ]


class DeckBuilder:
    """Samples entries from a catalog list and lays them out as a shuffled deck."""

    def __init__(self, catalog: VocabularyManager):
        self.catalog = catalog

    def build_deck(
        self,
        list_id: str,
        mode: GameMode,
        difficulty: Difficulty,
        rng_seed: Optional[int] = None,
    ) -> List[Card]:
        # A seeded Random drives both the sample and the shuffle
        rng = random.Random(rng_seed)
        word_list = self.catalog.get_words(list_id)
        count = word_count_for(difficulty)
        if len(word_list) < count:
            raise InsufficientEntries(list_id, len(word_list), count)

        selected = rng.sample(list(word_list), count)

        cards = [card for entry in selected for card in make_pair(entry, GameMode(mode))]
        rng.shuffle(cards)

        logger.info(
            f"Built deck of {len(cards)} cards [List: {list_id}, Mode: {GameMode(mode).value}, "
            f"Difficulty: {Difficulty(difficulty).value}]"
        )
        return cards
