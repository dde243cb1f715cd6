import logging
import random
import time
from typing import Awaitable, Callable, Optional

import httpx

from .config import settings
from .errors import HintFetchFailure
from .models import HintState
from .session import GameSession
from .signals import Signal, SignalBus
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

HINT_PROMPT = (
    'Provide a very short, simple example sentence for the English word "{word}" '
    "(part of speech: {pos}). Keep it under 15 words."
)


class GeminiHintClient:
    """Asks a Gemini model for an example sentence through its REST API."""

    def __init__(
        self,
        api_key: str = settings.HINT_API_KEY,
        model: str = settings.HINT_MODEL,
        base_url: str = settings.HINT_BASE_URL,
        timeout: float = settings.HINT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_hint(self, word: str, pos: str) -> str:
        """Returns the model's sentence. Raises HintFetchFailure on any failure."""
        payload = {
            "contents": [{"parts": [{"text": HINT_PROMPT.format(word=word, pos=pos)}]}],
            "generationConfig": {"thinkingConfig": {"thinkingBudget": 0}},
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            resp = await self._get_client().post(
                url, params={"key": self.api_key}, json=payload
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise HintFetchFailure(f"Hint request for {word!r} failed: {e}") from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            return settings.HINT_EMPTY_TEXT
        text = "".join(part.get("text", "") for part in parts).strip()
        return text or settings.HINT_EMPTY_TEXT


class HintGate:
    """Fetches a hint for a random unmatched entry and keeps it on screen a while.

    Overlapping requests are allowed; whichever resolves last wins.
    ``is_fetching`` is informational only, not a lock.
    """

    def __init__(
        self,
        catalog: VocabularyManager,
        get_hint: Callable[[str, str], Awaitable[str]],
        bus: Optional[SignalBus] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        display_seconds: float = settings.HINT_DISPLAY_MS / 1000,
    ):
        self.catalog = catalog
        self.get_hint = get_hint
        self.bus = bus or SignalBus()
        self.clock = clock
        self.rng = rng or random.Random()
        self.display_seconds = display_seconds
        self._text: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._in_flight = 0

    @property
    def state(self) -> HintState:
        if self._expires_at is not None and self.clock() >= self._expires_at:
            self._text = None
            self._expires_at = None
        return HintState(
            active_hint_text=self._text,
            expires_at=self._expires_at,
            is_fetching=self._in_flight > 0,
        )

    def reset(self):
        self._text = None
        self._expires_at = None

    async def request_hint(self, session: GameSession) -> Optional[str]:
        """Returns the stored hint text, or None when nothing was fetched or kept."""
        unmatched = session.unmatched_entry_ids()
        if not unmatched:
            return None

        entry = self.catalog.get_entry(session.setup.list_id, self.rng.choice(unmatched))
        generation = session.generation

        self._in_flight += 1
        try:
            text = await self.get_hint(entry.term, entry.part_of_speech)
        except HintFetchFailure as e:
            logger.warning(f"Hint fetch failed, using fallback: {e}")
            text = settings.HINT_FALLBACK_TEXT
        finally:
            self._in_flight -= 1

        if generation != session.generation:
            logger.info(f"Discarding hint for {entry.term!r} from a previous game")
            return None

        self._text = f'Hint for "{entry.term}": {text}'
        self._expires_at = self.clock() + self.display_seconds
        self.bus.emit(Signal.HINT_READY, self._text)
        return self._text
