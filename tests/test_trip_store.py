import json
from datetime import datetime, timedelta, timezone

from conftest import FakeExtractor, FakeTransport, text_turn

from ecotravel.core.controller import ConversationController
from ecotravel.core.session_manager import SessionManager
from ecotravel.core.trip_store import TripStore
from ecotravel.models.settings import UserSettings
from ecotravel.models.trip import Trip


def test_missing_file_is_empty_store(tmp_path, monkeypatch):
    monkeypatch.delenv("SERPAPI_API_KEY", raising=False)
    store = TripStore(str(tmp_path / "data.json"))

    assert store.load_trips() == []
    assert store.load_settings() == UserSettings()


def test_settings_and_trips_round_trip(tmp_path, monkeypatch):
    monkeypatch.delenv("SERPAPI_API_KEY", raising=False)
    path = tmp_path / "data.json"
    store = TripStore(str(path))

    store.save_settings(UserSettings(annual_budget=2500, annual_co2_limit=900, api_key="abc"))
    store.add_trip(Trip(destination="Lissabon", estimated_cost=850, estimated_co2=40))
    store.add_trip(Trip(destination="Porto", estimated_cost=700, estimated_co2=30))

    reloaded = TripStore(str(path))
    assert reloaded.load_settings().annual_budget == 2500
    assert reloaded.load_settings().api_key == "abc"
    assert [t.destination for t in reloaded.load_trips()] == ["Lissabon", "Porto"]
    assert json.loads(path.read_text(encoding="utf-8"))["trips"][0]["status"] == "planned"


def test_env_key_used_when_none_stored(tmp_path, monkeypatch):
    monkeypatch.setenv("SERPAPI_API_KEY", "from-env")
    store = TripStore(str(tmp_path / "data.json"))
    assert store.load_settings().api_key == "from-env"

    store.save_settings(UserSettings(api_key="stored"))
    assert store.load_settings().api_key == "stored"


def test_corrupt_file_and_bad_entries(tmp_path, monkeypatch):
    monkeypatch.delenv("SERPAPI_API_KEY", raising=False)
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    assert TripStore(str(path)).load_trips() == []

    path.write_text(json.dumps({"trips": [{"destination": "Rom"}, {"estimated_cost": 5}]}), encoding="utf-8")
    assert [t.destination for t in TripStore(str(path)).load_trips()] == ["Rom"]


def test_data_file_from_env(tmp_path, monkeypatch):
    target = tmp_path / "custom.json"
    monkeypatch.setenv("ECOTRAVEL_DATA_FILE", str(target))
    assert TripStore().path == str(target)


def _controller():
    return ConversationController(transport=FakeTransport([text_turn("Hi!")]), extractor=FakeExtractor())


def test_session_manager_reuses_controller():
    sessions = SessionManager()
    first = sessions.get_or_create("s1", _controller)
    assert sessions.get_or_create("s1", _controller) is first
    assert sessions.get("s2") is None
    assert len(sessions) == 1


def test_session_manager_cleanup_expired():
    sessions = SessionManager(session_ttl_minutes=60)
    sessions.get_or_create("old", _controller)
    sessions.get_or_create("fresh", _controller)
    sessions._last_seen["old"] = datetime.now(timezone.utc) - timedelta(hours=2)

    assert sessions.cleanup_expired() == 1
    assert sessions.get("old") is None
    assert sessions.get("fresh") is not None
    assert sessions.drop("old") is False
