# Role: External tool adapter for weather. Calls the Open-Meteo forecast endpoint for given coordinates and
# returns a compact summary (current conditions + a few daily min/max values) for the model.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

import ecotravel.config as config

# WMO weather interpretation codes (subset used by Open-Meteo).
_WEATHER_CODES = {
    0: "Klarer Himmel",
    1: "Überwiegend klar",
    2: "Teilweise bewölkt",
    3: "Bedeckt",
    45: "Nebel",
    48: "Reifnebel",
    51: "Leichter Nieselregen",
    53: "Nieselregen",
    55: "Starker Nieselregen",
    61: "Leichter Regen",
    63: "Regen",
    65: "Starker Regen",
    71: "Leichter Schneefall",
    73: "Schneefall",
    75: "Starker Schneefall",
    80: "Regenschauer",
    81: "Kräftige Regenschauer",
    82: "Heftige Regenschauer",
    95: "Gewitter",
    96: "Gewitter mit Hagel",
    99: "Schweres Gewitter mit Hagel",
}


@dataclass(frozen=True)
class WeatherToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


class WeatherClient:
    FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
    MAX_DAYS = 5
    _TIMEOUT_SECONDS = 15

    def get_weather(self, *, location_name: str, latitude: float, longitude: float) -> WeatherToolResult:
        # 1) Validate coordinates
        # 2) Fetch current + daily forecast
        # 3) Reduce to a small summary (at most MAX_DAYS daily entries)

        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError):
            return WeatherToolResult(ok=False, data={}, error="latitude/longitude must be numbers")

        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            return WeatherToolResult(ok=False, data={}, error=f"Coordinates out of range: ({lat}, {lon})")

        params = {
            "latitude": lat,
            "longitude": lon,
            "current": "temperature_2m,weather_code",
            "daily": "temperature_2m_max,temperature_2m_min,weather_code",
            "timezone": "auto",
            "forecast_days": self.MAX_DAYS,
        }

        # Open-Meteo reports bad requests as {"error": true, "reason": ...}; read the body before the status.
        try:
            r = requests.get(self.FORECAST_URL, params=params, timeout=self._TIMEOUT_SECONDS)
        except requests.RequestException as e:
            return WeatherToolResult(ok=False, data={}, error=f"Open-Meteo request failed: {e}")

        try:
            payload = r.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("error"):
            reason = payload.get("reason") or f"HTTP {r.status_code}"
            return WeatherToolResult(ok=False, data={}, error=f"Open-Meteo error: {reason}")

        if not r.ok:
            return WeatherToolResult(ok=False, data={}, error=f"Open-Meteo returned HTTP {r.status_code}")

        if not isinstance(payload, dict):
            return WeatherToolResult(ok=False, data={}, error="Open-Meteo error: malformed response")

        current = payload.get("current")
        if not isinstance(current, dict) or "temperature_2m" not in current:
            return WeatherToolResult(ok=False, data={}, error="No current weather returned")

        daily = payload.get("daily")
        daily = daily if isinstance(daily, dict) else {}
        times = daily.get("time") or []
        tmax = daily.get("temperature_2m_max") or []
        tmin = daily.get("temperature_2m_min") or []
        codes = daily.get("weather_code") or []

        days = []
        for i, day in enumerate(times[: self.MAX_DAYS]):
            code = codes[i] if i < len(codes) else None
            days.append(
                {
                    "date": day,
                    "temp_min_c": tmin[i] if i < len(tmin) else None,
                    "temp_max_c": tmax[i] if i < len(tmax) else None,
                    "conditions": describe_weather_code(code),
                }
            )

        code = current.get("weather_code")
        data = {
            "source": "open-meteo",
            "location": location_name,
            "timezone": payload.get("timezone"),
            "current": {
                "temperature_c": current.get("temperature_2m"),
                "weather_code": code,
                "conditions": describe_weather_code(code),
            },
            "daily": days,
        }

        if config.DEBUG:
            print("\n--- WEATHER TOOL ---")
            print("REQUEST:", params)
            print("CURRENT:", data["current"])
            print("--------------------\n")

        return WeatherToolResult(ok=True, data=data)


def describe_weather_code(code: Any) -> Optional[str]:
    if code is None:
        return None
    try:
        return _WEATHER_CODES.get(int(code), f"Wettercode {code}")
    except (TypeError, ValueError):
        return None
