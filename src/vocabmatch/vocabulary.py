import glob
import logging
import os
from typing import Any, Dict, List, Tuple

import pandas as pd

from .errors import UnknownVocabularyList
from .models import VocabularyEntry

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "id",
    "term",
    "part_of_speech",
    "meaning_translation",
    "meaning_definition",
]


class VocabularyManager:
    """Loads the vocabulary lists once and serves them read-only."""

    def __init__(self, directory: str):
        self.directory = directory
        self.vocab_sets: Dict[str, Tuple[VocabularyEntry, ...]] = {}
        self._index: Dict[str, Dict[str, VocabularyEntry]] = {}
        self.load_all()

    def load_all(self):
        vocab_sets = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            list_id = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(
                    file_path, encoding="utf-8", dtype=str, keep_default_na=False
                )
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue

            missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
            if missing:
                logger.error(f"Skipping {list_id}: Missing columns {missing}.")
                continue

            duplicated = df["id"].duplicated()
            if duplicated.any():
                logger.warning(
                    f"{list_id}: dropping duplicate ids {df.loc[duplicated, 'id'].tolist()}"
                )
                df = df[~duplicated]

            vocab_sets[list_id] = tuple(
                VocabularyEntry(**record)
                for record in df[REQUIRED_COLUMNS].to_dict("records")
            )
            logger.info(f"Loaded {len(df)} words from {list_id}")

        if not vocab_sets:
            logger.warning("No CSV files found. Loading dummy data.")
            vocab_sets["default_dummy"] = (
                VocabularyEntry(
                    id="d1",
                    term="dog",
                    part_of_speech="noun",
                    meaning_translation="كلب",
                    meaning_definition="a common four-legged pet",
                ),
                VocabularyEntry(
                    id="d2",
                    term="tree",
                    part_of_speech="noun",
                    meaning_translation="شجرة",
                    meaning_definition="a tall plant with a trunk",
                ),
                VocabularyEntry(
                    id="d3",
                    term="water",
                    part_of_speech="noun",
                    meaning_translation="ماء",
                    meaning_definition="the clear liquid we drink",
                ),
            )

        self.vocab_sets = vocab_sets
        self._index = {
            list_id: {entry.id: entry for entry in entries}
            for list_id, entries in vocab_sets.items()
        }

    def get_words(self, list_id: str) -> Tuple[VocabularyEntry, ...]:
        if list_id not in self.vocab_sets:
            raise UnknownVocabularyList(list_id)
        return self.vocab_sets[list_id]

    def get_entry(self, list_id: str, entry_id: str) -> VocabularyEntry:
        if list_id not in self._index:
            raise UnknownVocabularyList(list_id)
        return self._index[list_id][entry_id]

    def get_topics(self) -> List[Dict[str, Any]]:
        topics = []
        for key, words in self.vocab_sets.items():
            display_name = key.replace("_", " ").title()
            topics.append({"id": key, "name": display_name, "count": len(words)})
        topics.sort(key=lambda x: x["name"])
        return topics
