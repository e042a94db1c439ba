# Role: External tool adapter for accommodation search (SerpApi google_hotels engine, hotels or vacation
# rentals). Reduces the provider response to at most MAX_RESULTS properties with a durable search link.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from ecotravel.errors import ExternalApiError
from ecotravel.tools.serpapi import serpapi_search, with_hint

MAX_RESULTS = 5


@dataclass(frozen=True)
class HotelToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


class HotelClient:
    ENGINE = "google_hotels"
    CURRENCY = "EUR"
    LANGUAGE = "de"
    COUNTRY = "de"

    def search(
        self,
        *,
        api_key: str,
        query: str,
        check_in_date: str,
        check_out_date: str,
        adults: int = 1,
        vacation_rentals: bool = False,
    ) -> HotelToolResult:
        # 1) Build query (vacation rental flag switches the provider result type)
        # 2) Call SerpApi
        # 3) Reduce properties to MAX_RESULTS records
        params = {
            "q": query,
            "check_in_date": check_in_date,
            "check_out_date": check_out_date,
            "adults": adults,
            "vacation_rentals": "true" if vacation_rentals else None,
            "currency": self.CURRENCY,
            "hl": self.LANGUAGE,
            "gl": self.COUNTRY,
        }

        try:
            payload = serpapi_search(self.ENGINE, params, api_key)
        except ExternalApiError as e:
            return HotelToolResult(ok=False, data={}, error=with_hint(str(e), e.status_code))

        properties = payload.get("properties") or []
        if not isinstance(properties, list):
            return HotelToolResult(ok=False, data={}, error="Malformed SerpApi response: properties is not an array.")

        usable = [prop for prop in properties if isinstance(prop, dict)]
        if not usable and properties:
            return HotelToolResult(ok=False, data={}, error="Malformed SerpApi response: no usable properties.")

        hotels = [_simplify_property(prop, query, check_in_date, check_out_date) for prop in usable[:MAX_RESULTS]]

        if not hotels:
            return HotelToolResult(ok=False, data={}, error=f"No accommodation found for '{query}'.")

        return HotelToolResult(
            ok=True,
            data={
                "query": query,
                "check_in_date": check_in_date,
                "check_out_date": check_out_date,
                "adults": adults,
                "currency": self.CURRENCY,
                "hotels": hotels,
            },
        )


def _simplify_property(prop: Dict[str, Any], query: str, check_in: str, check_out: str) -> Dict[str, Any]:
    nightly = prop.get("rate_per_night")
    nightly = nightly if isinstance(nightly, dict) else {}
    total = prop.get("total_rate")
    total = total if isinstance(total, dict) else {}
    name = str(prop.get("name") or "")
    return {
        "name": name or None,
        "type": prop.get("type"),
        "price_per_night": nightly.get("extracted_lowest", nightly.get("lowest")),
        "total_price": total.get("extracted_lowest", total.get("lowest")),
        "rating": prop.get("overall_rating"),
        "description": prop.get("description"),
        "eco_certified": bool(prop.get("eco_certified")),
        "link": hotels_link(f"{name} {query}".strip(), check_in, check_out),
    }


def hotels_link(query: str, check_in: str, check_out: str) -> str:
    q = f"{query} {check_in} bis {check_out}"
    return f"https://www.google.com/travel/search?q={quote(q)}"
