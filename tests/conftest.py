import sys
from concurrent.futures import Executor, Future
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ecotravel.core.controller import ConversationController  # noqa: E402
from ecotravel.llm.chat_transport import StreamChunk, StreamHandle  # noqa: E402
from ecotravel.llm.retry import RetryPolicy  # noqa: E402
from ecotravel.models.settings import UserSettings  # noqa: E402
from ecotravel.models.tool_call import ToolCall  # noqa: E402
from ecotravel.tools.dispatcher import ToolDispatcher  # noqa: E402
from ecotravel.tools.flight_client import FlightToolResult  # noqa: E402
from ecotravel.tools.hotel_client import HotelToolResult  # noqa: E402
from ecotravel.tools.weather_client import WeatherToolResult  # noqa: E402

TODAY = date(2026, 10, 19)


# ----------------------------
# Scripted chat transport
# ----------------------------
def text_turn(*fragments: str) -> List[StreamChunk]:
    return [StreamChunk(text=f) for f in fragments]


def tool_turn(name: str, args: Optional[Dict[str, Any]] = None, call_id: str = "call-1", text: str = "") -> List[StreamChunk]:
    chunks = [StreamChunk(text=text)] if text else []
    chunks.append(StreamChunk(tool_calls=(ToolCall(name=name, args=args or {}, call_id=call_id),)))
    return chunks


class FakeSession:
    """Each send() replays the next scripted turn (a list of StreamChunks or an exception to raise)."""

    def __init__(self, turns, on_send: Optional[Callable[[Any], None]] = None) -> None:
        self.turns = list(turns)
        self.sent: List[Any] = []
        self.on_send = on_send

    def send(self, message):
        self.sent.append(message)
        if self.on_send is not None:
            self.on_send(message)
        if not self.turns:
            raise AssertionError(f"Unexpected send: {message!r}")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return StreamHandle(turn)


class FakeTransport:
    def __init__(self, turns=(), on_send=None) -> None:
        self.session = FakeSession(turns, on_send)
        self.created = []

    def create(self, settings, trips):
        self.created.append((settings, list(trips)))
        return self.session


class InlineExecutor(Executor):
    """Runs submitted work immediately so extraction results are visible right after a turn."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class FakeExtractor:
    def __init__(self, proposal=None) -> None:
        self.proposal = proposal
        self.transcripts: List[str] = []

    def extract(self, conversation_text):
        self.transcripts.append(conversation_text)
        return self.proposal


# ----------------------------
# Fake tool clients
# ----------------------------
class FakeWeatherClient:
    def __init__(self, result: Optional[WeatherToolResult] = None) -> None:
        self.result = result or WeatherToolResult(ok=True, data={"location": "Lissabon", "current": {"temperature_c": 21}})
        self.calls: List[Dict[str, Any]] = []

    def get_weather(self, **kwargs):
        self.calls.append(kwargs)
        return self.result


class FakeFlightClient:
    def __init__(self, result: Optional[FlightToolResult] = None) -> None:
        self.result = result or FlightToolResult(ok=True, data={"flights": [{"price": 120, "co2_kg": 95}]})
        self.calls: List[Dict[str, Any]] = []

    def search(self, **kwargs):
        self.calls.append(kwargs)
        return self.result


class FakeHotelClient:
    def __init__(self, result: Optional[HotelToolResult] = None) -> None:
        self.result = result or HotelToolResult(ok=True, data={"hotels": [{"name": "Casa Verde"}]})
        self.calls: List[Dict[str, Any]] = []

    def search(self, **kwargs):
        self.calls.append(kwargs)
        return self.result


# ----------------------------
# Fixtures
# ----------------------------
@pytest.fixture()
def settings() -> UserSettings:
    return UserSettings(annual_budget=3000, annual_co2_limit=1500, api_key="test-key")


@pytest.fixture()
def no_key_settings() -> UserSettings:
    return UserSettings(annual_budget=3000, annual_co2_limit=1500)


@pytest.fixture()
def make_dispatcher():
    def _make(settings, weather=None, flights=None, hotels=None) -> ToolDispatcher:
        return ToolDispatcher(
            settings,
            weather_client=weather or FakeWeatherClient(),
            flight_client=flights or FakeFlightClient(),
            hotel_client=hotels or FakeHotelClient(),
            today=lambda: TODAY,
        )

    return _make


@pytest.fixture()
def make_controller(settings, make_dispatcher):
    def _make(turns, extractor=None, dispatcher=None, on_send=None, retry_policy=None, trips=None, user_settings=None):
        active = user_settings or settings
        return ConversationController(
            settings=active,
            trips=trips,
            transport=FakeTransport(turns, on_send),
            dispatcher=dispatcher or make_dispatcher(active),
            extractor=extractor or FakeExtractor(),
            retry_policy=retry_policy or RetryPolicy(sleep=lambda _: None),
            executor=InlineExecutor(),
        )

    return _make
