# Role: JSON-file persistence for user settings and saved trips. Owned by the surrounding application
# (API layer / CLI); the conversation core only reads settings and trips passed in at construction.

from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

import ecotravel.config as config
from ecotravel.models.settings import UserSettings
from ecotravel.models.trip import Trip


class TripStore:
    """
    Single JSON document: {"settings": {...}, "trips": [...]}.

    A missing or unreadable file behaves like an empty store. When no SerpApi key is stored,
    SERPAPI_API_KEY from the environment is used instead.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or config.data_file()
        self._lock = threading.Lock()

    # ----------------------------
    # Settings
    # ----------------------------
    def load_settings(self) -> UserSettings:
        with self._lock:
            raw = self._read().get("settings") or {}
        try:
            settings = UserSettings.model_validate(raw)
        except ValidationError as e:
            if config.DEBUG:
                print("STORE: invalid settings, using defaults:", repr(e))
            settings = UserSettings()

        if not settings.has_api_key:
            env_key = os.getenv("SERPAPI_API_KEY")
            if env_key:
                settings = settings.model_copy(update={"api_key": env_key})
        return settings

    def save_settings(self, settings: UserSettings) -> None:
        with self._lock:
            doc = self._read()
            doc["settings"] = settings.model_dump(mode="json")
            self._write(doc)

    # ----------------------------
    # Trips
    # ----------------------------
    def load_trips(self) -> List[Trip]:
        with self._lock:
            raw = self._read().get("trips") or []

        trips: List[Trip] = []
        for item in raw:
            try:
                trips.append(Trip.model_validate(item))
            except ValidationError as e:
                if config.DEBUG:
                    print("STORE: skipping invalid trip:", repr(e))
        return trips

    def add_trip(self, trip: Trip) -> None:
        with self._lock:
            doc = self._read()
            trips = doc.get("trips") or []
            trips.append(trip.model_dump(mode="json"))
            doc["trips"] = trips
            self._write(doc)

    # ----------------------------
    # File I/O
    # ----------------------------
    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            if config.DEBUG:
                print("STORE: could not read", self.path, repr(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, doc: Dict[str, Any]) -> None:
        # Key line: write to a temp file and rename so a crash never leaves half a document.
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
