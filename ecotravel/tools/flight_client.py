# Role: External tool adapter for flight search (SerpApi google_flights engine). Reduces the provider response
# to at most MAX_RESULTS simplified offers with a derived CO2 estimate and a durable Google Flights link.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from ecotravel.errors import ExternalApiError
from ecotravel.tools.serpapi import serpapi_search, with_hint

MAX_RESULTS = 5

_ROUND_TRIP = 1
_ONE_WAY = 2


@dataclass(frozen=True)
class FlightToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


class FlightClient:
    ENGINE = "google_flights"
    CURRENCY = "EUR"
    LANGUAGE = "de"

    def search(
        self,
        *,
        api_key: str,
        origin: str,
        destination: str,
        departure_date: str,
        return_date: Optional[str] = None,
    ) -> FlightToolResult:
        # 1) Build query (one-way unless a return date is given)
        # 2) Call SerpApi; translate known failure modes into hints
        # 3) Reduce best + other flights to MAX_RESULTS records
        params = {
            "departure_id": origin,
            "arrival_id": destination,
            "outbound_date": departure_date,
            "return_date": return_date,
            "type": _ROUND_TRIP if return_date else _ONE_WAY,
            "currency": self.CURRENCY,
            "hl": self.LANGUAGE,
        }

        try:
            payload = serpapi_search(self.ENGINE, params, api_key)
        except ExternalApiError as e:
            return FlightToolResult(ok=False, data={}, error=with_hint(str(e), e.status_code))

        link = flights_link(origin, destination, departure_date, return_date)
        best = payload.get("best_flights") or []
        other = payload.get("other_flights") or []
        if not isinstance(best, list) or not isinstance(other, list):
            return FlightToolResult(
                ok=False, data={}, error="Malformed SerpApi response: flight lists are not arrays."
            )

        offers = [offer for offer in best + other if isinstance(offer, dict)]
        if not offers and (best or other):
            return FlightToolResult(ok=False, data={}, error="Malformed SerpApi response: no usable flight offers.")
        flights = [_simplify_offer(offer, link) for offer in offers[:MAX_RESULTS]]

        if not flights:
            return FlightToolResult(
                ok=False,
                data={},
                error=f"No flights found from {origin} to {destination} on {departure_date}.",
            )

        return FlightToolResult(
            ok=True,
            data={
                "origin": origin,
                "destination": destination,
                "departure_date": departure_date,
                "return_date": return_date,
                "currency": self.CURRENCY,
                "flights": flights,
                "search_link": link,
            },
        )


def _simplify_offer(offer: Dict[str, Any], link: str) -> Dict[str, Any]:
    legs = offer.get("flights")
    legs = [leg for leg in legs if isinstance(leg, dict)] if isinstance(legs, list) else []
    airlines = []
    for leg in legs:
        airline = leg.get("airline")
        if airline and airline not in airlines:
            airlines.append(airline)

    emissions = offer.get("carbon_emissions")
    grams = emissions.get("this_flight") if isinstance(emissions, dict) else None
    return {
        "price": offer.get("price"),
        "airline": ", ".join(str(a) for a in airlines) or None,
        "duration_minutes": offer.get("total_duration"),
        "stops": max(len(legs) - 1, 0),
        "co2_kg": grams_to_kg(grams),
        "link": link,
    }


def grams_to_kg(grams: Any) -> Optional[int]:
    if grams is None:
        return None
    try:
        return round(float(grams) / 1000)
    except (TypeError, ValueError):
        return None


def flights_link(origin: str, destination: str, departure_date: str, return_date: Optional[str] = None) -> str:
    # Key line: a search URL instead of the provider's session-bound booking token, so it stays valid.
    q = f"Flights from {origin} to {destination} on {departure_date}"
    if return_date:
        q += f" returning {return_date}"
    return f"https://www.google.com/travel/flights?q={quote(q)}"
