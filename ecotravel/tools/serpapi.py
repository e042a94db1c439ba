# Role: Shared SerpApi transport for the flight and hotel clients. One GET per search; HTTP failures and
# provider "error" fields are raised as ExternalApiError so the clients can turn them into tool errors.

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

import ecotravel.config as config
from ecotravel.errors import ExternalApiError

SERPAPI_URL = "https://serpapi.com/search.json"
_TIMEOUT_SECONDS = 30


def serpapi_search(engine: str, params: Dict[str, Any], api_key: str) -> Dict[str, Any]:
    # 1) Build query (drop empty values)
    # 2) GET and decode JSON
    # 3) Provider error field wins over the HTTP status (it carries the useful message)
    query = {k: v for k, v in params.items() if v is not None and v != ""}
    query["engine"] = engine
    query["api_key"] = api_key

    try:
        r = requests.get(SERPAPI_URL, params=query, timeout=_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise ExternalApiError(f"SerpApi request failed: {e}") from e

    try:
        payload = r.json()
    except ValueError:
        payload = None

    if config.DEBUG:
        print(f"\n--- SERPAPI {engine} ---")
        print("REQUEST:", {k: v for k, v in query.items() if k != "api_key"})
        print("STATUS:", r.status_code)
        print("-----------------------\n")

    if isinstance(payload, dict) and payload.get("error"):
        raise ExternalApiError(str(payload["error"]), status_code=r.status_code)

    if not r.ok:
        raise ExternalApiError(f"SerpApi returned HTTP {r.status_code}", status_code=r.status_code)

    if not isinstance(payload, dict):
        raise ExternalApiError("SerpApi returned a malformed response body", status_code=r.status_code)

    return payload


def with_hint(error: str, status_code: Optional[int] = None) -> str:
    # Role: map known misuse patterns to targeted hints the model can act on.
    low = error.lower()
    hints = []
    if "departure_id" in low or "arrival_id" in low or "airport" in low:
        hints.append("Use 3-letter IATA airport codes (e.g. 'MUC', 'LHR'), not city names.")
    if "return_date" in low:
        hints.append("Round trips need a returnDate in YYYY-MM-DD format; omit it only for one-way flights.")
    if "outbound_date" in low or "check_in_date" in low or "check_out_date" in low:
        hints.append("Dates must be future dates in YYYY-MM-DD format.")
    if status_code == 401 or "api key" in low:
        hints.append("The SerpApi key seems invalid; ask the user to check it in the settings.")
    if not hints:
        return error
    return f"{error} HINT: {' '.join(hints)}"
