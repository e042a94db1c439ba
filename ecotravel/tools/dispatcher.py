# Role: Executes one model tool call. Widget tools open a widget and suspend the loop; displayRecommendations
# attaches cards and acknowledges immediately; weather/flight/hotel tools call external APIs and always come back
# with a tool result (data or an "ERROR:" string) instead of raising.

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

import ecotravel.config as config
from ecotravel.errors import ToolPreconditionError
from ecotravel.models.message import Message
from ecotravel.models.recommendation import Recommendation
from ecotravel.models.settings import UserSettings
from ecotravel.models.state import ConversationState, WidgetKind
from ecotravel.models.tool_call import ToolCall, ToolOutcome, error_result
from ecotravel.tools.flight_client import FlightClient
from ecotravel.tools.hotel_client import HotelClient
from ecotravel.tools.registry import (
    DISPLAY_RECOMMENDATIONS,
    GET_DESTINATION_WEATHER,
    REQUEST_PERSON_COUNT,
    REQUEST_TRIP_DETAILS,
    SEARCH_FLIGHTS,
    SEARCH_HOTELS,
    get_tool,
    tool_names,
)
from ecotravel.tools.weather_client import WeatherClient

WIDGET_TOOLS = {
    REQUEST_PERSON_COUNT: WidgetKind.PERSON_COUNT,
    REQUEST_TRIP_DETAILS: WidgetKind.TRIP_DETAILS,
}

RECOMMENDATIONS_INTRO = "Ich habe folgende Optionen für dich gefunden:"
RECOMMENDATIONS_ACK = "displayed"

VACATION_RENTAL = "vacation_rental"
VACATION_RENTAL_TERM = "Ferienwohnung"

_MISSING_KEY_USER_MESSAGE = (
    "Für die {what} brauche ich einen SerpApi-Key. "
    "Bitte hinterlege ihn in den Einstellungen, dann kann ich echte Angebote suchen."
)


class ToolDispatcher:
    def __init__(
        self,
        settings: UserSettings,
        weather_client: Optional[WeatherClient] = None,
        flight_client: Optional[FlightClient] = None,
        hotel_client: Optional[HotelClient] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        # Key line: settings (incl. the SerpApi key) are passed in; nothing reads a global credential.
        self.settings = settings
        self.weather_client = weather_client or WeatherClient()
        self.flight_client = flight_client or FlightClient()
        self.hotel_client = hotel_client or HotelClient()
        self._today = today or date.today

    def dispatch(self, call: ToolCall, state: ConversationState) -> ToolOutcome:
        # 1) Unknown tool -> ERROR string listing the registered tools so the model can recover
        # 2) Widget tools -> open widget (pending call + widget set together) -> suspend
        # 3) displayRecommendations -> validate + attach cards -> immediate ack
        # 4) External tools -> fetch -> result or ERROR string

        if config.DEBUG:
            print("\n--- TOOL DISPATCH ---")
            print("TOOL:", call.name)
            print("ARGS:", call.args)
            print("---------------------\n")

        if get_tool(call.name) is None:
            return ToolOutcome.immediate(
                error_result(f"Unknown tool '{call.name}'. Available tools: {', '.join(tool_names())}.")
            )

        widget = WIDGET_TOOLS.get(call.name)
        if widget is not None:
            state.open_widget(widget, call.name, call.call_id)
            return ToolOutcome.suspend(widget)

        if call.name == DISPLAY_RECOMMENDATIONS:
            return self._display_recommendations(call.args, state)

        handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            GET_DESTINATION_WEATHER: self._weather,
            SEARCH_FLIGHTS: self._flights,
            SEARCH_HOTELS: self._hotels,
        }
        handler = handlers[call.name]

        try:
            return ToolOutcome.fetched(handler(call.args))
        except ToolPreconditionError as e:
            appended: List[Message] = []
            if e.user_message:
                notice = Message(role="model", text=e.user_message)
                state.messages.append(notice)
                appended.append(notice)
            return ToolOutcome.fetched(error_result(e.detail), appended=appended)

    # ----------------------------
    # displayRecommendations
    # ----------------------------
    def _display_recommendations(self, args: Dict[str, Any], state: ConversationState) -> ToolOutcome:
        raw = args.get("recommendations")
        if not isinstance(raw, list) or not raw:
            return ToolOutcome.immediate(error_result("displayRecommendations needs a non-empty 'recommendations' array."))

        try:
            recommendations = [Recommendation.model_validate(item) for item in raw]
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            return ToolOutcome.immediate(
                error_result(
                    "Invalid recommendations; every card needs title, destination, totalCost >= 0, "
                    f"co2Kg >= 0, transportMode and imageKeyword. Problems in: {', '.join(fields)}"
                )
            )

        message = Message(role="model", text=RECOMMENDATIONS_INTRO, recommendations=recommendations)
        state.messages.append(message)
        return ToolOutcome.immediate(RECOMMENDATIONS_ACK, appended=[message])

    # ----------------------------
    # External tools
    # ----------------------------
    def _weather(self, args: Dict[str, Any]) -> Any:
        result = self.weather_client.get_weather(
            location_name=str(args.get("locationName") or ""),
            latitude=args.get("latitude"),
            longitude=args.get("longitude"),
        )
        if result.ok:
            return result.data
        return error_result(f"Weather lookup failed: {result.error}")

    def _flights(self, args: Dict[str, Any]) -> Any:
        api_key = self._require_api_key("Flugsuche")

        origin = str(args.get("origin") or "").strip().upper()
        destination = str(args.get("destination") or "").strip().upper()
        departure = self._parse_date(args.get("departureDate"), "departureDate")
        return_raw = args.get("returnDate")
        returning = self._parse_date(return_raw, "returnDate") if return_raw else None

        today = self._today()
        if departure < today:
            raise ToolPreconditionError(
                f"departureDate {departure.isoformat()} is in the past. Today is {today.isoformat()}. "
                "Ask the user for a future travel date.",
                user_message=f"Das Abflugdatum {departure.isoformat()} liegt in der Vergangenheit "
                f"(heute ist der {today.isoformat()}).",
            )
        if returning is not None and returning < departure:
            raise ToolPreconditionError(
                f"returnDate {returning.isoformat()} is before departureDate {departure.isoformat()}."
            )

        result = self.flight_client.search(
            api_key=api_key,
            origin=origin,
            destination=destination,
            departure_date=departure.isoformat(),
            return_date=returning.isoformat() if returning else None,
        )
        if result.ok:
            return result.data
        return error_result(f"Flight search failed: {result.error}")

    def _hotels(self, args: Dict[str, Any]) -> Any:
        api_key = self._require_api_key("Unterkunftssuche")

        query = str(args.get("q") or "").strip()
        if not query:
            raise ToolPreconditionError("searchHotels needs a location query 'q'.")

        check_in = self._parse_date(args.get("check_in_date"), "check_in_date")
        check_out = self._parse_date(args.get("check_out_date"), "check_out_date")
        if check_out <= check_in:
            raise ToolPreconditionError("check_out_date must be after check_in_date.")

        vacation_rental = args.get("accommodation_type") == VACATION_RENTAL
        if vacation_rental:
            query = normalize_vacation_rental_query(query)

        result = self.hotel_client.search(
            api_key=api_key,
            query=query,
            check_in_date=check_in.isoformat(),
            check_out_date=check_out.isoformat(),
            adults=_as_adults(args.get("adults")),
            vacation_rentals=vacation_rental,
        )
        if result.ok:
            return result.data
        return error_result(f"Accommodation search failed: {result.error}")

    # ----------------------------
    # Preconditions
    # ----------------------------
    def _require_api_key(self, what: str) -> str:
        if not self.settings.has_api_key:
            raise ToolPreconditionError(
                "No SerpApi key is configured. Tell the user to add one in the settings "
                "and offer estimates without live prices meanwhile.",
                user_message=_MISSING_KEY_USER_MESSAGE.format(what=what),
            )
        return self.settings.api_key.strip()

    def _parse_date(self, value: Any, field_name: str) -> date:
        try:
            return date.fromisoformat(str(value or "").strip())
        except ValueError:
            raise ToolPreconditionError(
                f"{field_name} '{value}' is not a valid date. HINT: use YYYY-MM-DD "
                f"(today is {self._today().isoformat()})."
            ) from None


def normalize_vacation_rental_query(query: str) -> str:
    # Key line: Google Hotels only returns rentals reliably when the query names them in the local language.
    if VACATION_RENTAL_TERM.lower() in query.lower():
        return query
    return f"{VACATION_RENTAL_TERM} {query}"


def _as_adults(value: Any) -> int:
    try:
        adults = int(value)
    except (TypeError, ValueError):
        return 1
    return max(adults, 1)
