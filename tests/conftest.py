import heapq

import pandas as pd
import pytest

from vocabmatch.deck import make_pair
from vocabmatch.models import GameMode, VocabularyEntry
from vocabmatch.vocabulary import VocabularyManager


class FakeScheduler:
    """Stands in for the event loop's ``call_later`` with a manual clock."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = 0

    def call_later(self, delay, callback, *args):
        self._seq += 1
        heapq.heappush(self._queue, (self.now + delay, self._seq, callback, args))

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, callback, args = heapq.heappop(self._queue)
            self.now = when
            callback(*args)
        self.now = target

    @property
    def pending(self):
        return len(self._queue)


def make_entry(entry_id: str) -> VocabularyEntry:
    return VocabularyEntry(
        id=entry_id,
        term=f"term-{entry_id}",
        part_of_speech="noun",
        meaning_translation=f"ترجمة-{entry_id}",
        meaning_definition=f"definition of {entry_id}",
    )


def make_deck(*entry_ids, mode=GameMode.ENGLISH_TO_TRANSLATION):
    """Unshuffled deck: [A-term, A-match, B-term, B-match, ...]."""
    return [card for entry_id in entry_ids for card in make_pair(make_entry(entry_id), mode)]


def write_list(directory, list_id, count):
    rows = [make_entry(f"{list_id}{i:02d}").model_dump() for i in range(count)]
    pd.DataFrame(rows).to_csv(directory / f"{list_id}.csv", index=False)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def catalog_dir(tmp_path):
    d = tmp_path / "vocabulary"
    d.mkdir()
    write_list(d, "band", 24)
    write_list(d, "tiny", 4)
    return d


@pytest.fixture
def catalog(catalog_dir):
    return VocabularyManager(str(catalog_dir))
