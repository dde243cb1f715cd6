from typing import Dict

from .config import settings
from .game import MatchGame
from .hints import GeminiHintClient
from .vocabulary import VocabularyManager

vocab_manager = VocabularyManager(f"{settings.VOCAB_DIR}")
hint_client = GeminiHintClient()
games: Dict[str, MatchGame] = {}
