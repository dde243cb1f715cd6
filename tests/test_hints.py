import asyncio
import json
import random
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import make_deck
from vocabmatch.config import settings
from vocabmatch.errors import HintFetchFailure
from vocabmatch.hints import GeminiHintClient, HintGate
from vocabmatch.models import Difficulty, GameMode, GameSetup
from vocabmatch.session import GameSession
from vocabmatch.signals import Signal


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(scheduler, catalog):
    s = GameSession(scheduler)
    deck = make_deck("band00", "band01")
    s.start(deck, GameSetup(list_id="band", mode=GameMode.ENGLISH_TO_TRANSLATION, difficulty=Difficulty.EASY))
    return s


def make_gate(catalog, get_hint, clock, session):
    return HintGate(catalog, get_hint, bus=session.bus, clock=clock, rng=random.Random(3))


@pytest.mark.asyncio
async def test_hint_for_unmatched_entry(catalog, session, clock):
    get_hint = AsyncMock(return_value="The term is here.")
    gate = make_gate(catalog, get_hint, clock, session)
    ready = []
    session.bus.connect(Signal.HINT_READY, ready.append)

    text = await gate.request_hint(session)

    term, pos = get_hint.await_args.args
    assert term in ("term-band00", "term-band01")
    assert pos == "noun"
    assert text == f'Hint for "{term}": The term is here.'
    assert gate.state.active_hint_text == text
    assert gate.state.is_fetching is False
    assert ready == [text]


@pytest.mark.asyncio
async def test_hint_picks_only_unmatched(catalog, session, clock, scheduler):
    session.request_flip(0)
    session.request_flip(1)
    scheduler.advance(0.6)
    get_hint = AsyncMock(return_value="ok")
    gate = make_gate(catalog, get_hint, clock, session)

    for _ in range(5):
        await gate.request_hint(session)
        assert get_hint.await_args.args[0] == "term-band01"


@pytest.mark.asyncio
async def test_hint_expires_after_display_time(catalog, session, clock):
    gate = make_gate(catalog, AsyncMock(return_value="ok"), clock, session)

    await gate.request_hint(session)
    clock.now += 7.9
    assert gate.state.active_hint_text is not None

    clock.now = 100.0 + 8
    assert gate.state.active_hint_text is None
    assert gate.state.expires_at is None


@pytest.mark.asyncio
async def test_expiry_counts_from_fetch_completion(catalog, session, clock):
    async def slow_hint(word, pos):
        clock.now += 30
        return "late but fine"

    gate = make_gate(catalog, slow_hint, clock, session)
    await gate.request_hint(session)

    assert gate.state.expires_at == pytest.approx(clock.now + 8)
    assert gate.state.active_hint_text.endswith("late but fine")


@pytest.mark.asyncio
async def test_failure_uses_fallback(catalog, session, clock):
    get_hint = AsyncMock(side_effect=HintFetchFailure("boom"))
    gate = make_gate(catalog, get_hint, clock, session)

    text = await gate.request_hint(session)

    assert text.endswith(settings.HINT_FALLBACK_TEXT)
    assert gate.state.is_fetching is False


@pytest.mark.asyncio
async def test_all_matched_is_noop(catalog, session, clock, scheduler):
    for first, second in ((0, 1), (2, 3)):
        session.request_flip(first)
        session.request_flip(second)
        scheduler.advance(0.6)
    get_hint = AsyncMock(return_value="unused")
    gate = make_gate(catalog, get_hint, clock, session)

    assert await gate.request_hint(session) is None
    get_hint.assert_not_awaited()
    assert gate.state.active_hint_text is None


@pytest.mark.asyncio
async def test_is_fetching_while_in_flight(catalog, session, clock):
    release = asyncio.Event()

    async def blocked_hint(word, pos):
        await release.wait()
        return "done"

    gate = make_gate(catalog, blocked_hint, clock, session)
    task = asyncio.create_task(gate.request_hint(session))
    await asyncio.sleep(0)
    assert gate.state.is_fetching is True

    release.set()
    await task
    assert gate.state.is_fetching is False


@pytest.mark.asyncio
async def test_late_hint_from_previous_game_discarded(catalog, session, clock):
    release = asyncio.Event()

    async def blocked_hint(word, pos):
        await release.wait()
        return "stale"

    gate = make_gate(catalog, blocked_hint, clock, session)
    task = asyncio.create_task(gate.request_hint(session))
    await asyncio.sleep(0)

    session.start(make_deck("band02", "band03"), session.setup)
    release.set()

    assert await task is None
    assert gate.state.active_hint_text is None


@pytest.mark.asyncio
async def test_overlapping_requests_last_wins(catalog, session, clock):
    replies = iter(["first", "second"])
    gate = make_gate(catalog, AsyncMock(side_effect=lambda w, p: next(replies)), clock, session)

    await asyncio.gather(gate.request_hint(session), gate.request_hint(session))

    assert gate.state.active_hint_text.endswith("second")


# --- Gemini client ---
def gemini_client(handler):
    transport = httpx.MockTransport(handler)
    return GeminiHintClient(
        api_key="test-key",
        model="test-model",
        base_url="https://example.test/v1beta",
        client=httpx.AsyncClient(transport=transport),
    )


@pytest.mark.asyncio
async def test_gemini_client_returns_text():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": " I eat an apple. "}]}}]}
        )

    client = gemini_client(handler)
    assert await client.get_hint("apple", "noun") == "I eat an apple."
    assert seen["url"].startswith("https://example.test/v1beta/models/test-model:generateContent")
    assert "key=test-key" in seen["url"]
    assert '"apple"' in seen["body"]["contents"][0]["parts"][0]["text"]
    await client.close()


@pytest.mark.asyncio
async def test_gemini_client_empty_answer():
    client = gemini_client(lambda request: httpx.Response(200, json={"candidates": []}))
    assert await client.get_hint("apple", "noun") == settings.HINT_EMPTY_TEXT


@pytest.mark.asyncio
async def test_gemini_client_http_error_raises():
    client = gemini_client(lambda request: httpx.Response(500, text="oops"))
    with pytest.raises(HintFetchFailure):
        await client.get_hint("apple", "noun")


@pytest.mark.asyncio
async def test_gemini_client_connect_error_raises():
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    client = gemini_client(handler)
    with pytest.raises(HintFetchFailure):
        await client.get_hint("apple", "noun")
