# Role: Static catalogue of the tools exposed to the model (name, model-facing description, parameter schema).
# Purely descriptive: ChatTransport turns it into function declarations, ToolDispatcher fulfils each name.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

REQUEST_PERSON_COUNT = "requestPersonCount"
REQUEST_TRIP_DETAILS = "requestTripDetails"
DISPLAY_RECOMMENDATIONS = "displayRecommendations"
GET_DESTINATION_WEATHER = "getDestinationWeather"
SEARCH_FLIGHTS = "searchFlights"
SEARCH_HOTELS = "searchHotels"

ACCOMMODATION_TYPES = ("hotel", "vacation_rental")


@dataclass(frozen=True)
class ParamSpec:
    type: str
    description: str = ""
    required: bool = False
    enum: Optional[Tuple[str, ...]] = None
    items: Optional["ParamSpec"] = None
    properties: Dict[str, "ParamSpec"] = field(default_factory=dict)

    def to_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type.upper()}
        if self.description:
            schema["description"] = self.description
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.items is not None:
            schema["items"] = self.items.to_schema()
        if self.properties:
            schema.update(_object_schema(self.properties))
        return schema


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: Dict[str, ParamSpec] = field(default_factory=dict)

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(name for name, spec in self.parameters.items() if spec.required)

    def to_declaration(self) -> Dict[str, Any]:
        # Key line: parameterless tools (widgets) must not carry an empty OBJECT schema.
        declaration: Dict[str, Any] = {"name": self.name, "description": self.description}
        if self.parameters:
            declaration["parameters"] = {"type": "OBJECT", **_object_schema(self.parameters)}
        return declaration


def _object_schema(properties: Dict[str, ParamSpec]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"properties": {name: spec.to_schema() for name, spec in properties.items()}}
    required = [name for name, spec in properties.items() if spec.required]
    if required:
        out["required"] = required
    return out


_RECOMMENDATION = ParamSpec(
    type="object",
    properties={
        "title": ParamSpec("string", "Kurzer, knackiger Titel (z.B. 'Zugreise in die Toskana')", required=True),
        "destination": ParamSpec("string", "Ort/Region", required=True),
        "description": ParamSpec("string", "1-2 Sätze, warum das toll ist."),
        "totalCost": ParamSpec("number", "Gesamtpreis pro Person in EUR", required=True),
        "co2Kg": ParamSpec("number", "CO2-Ausstoß in kg", required=True),
        "transportMode": ParamSpec("string", "Zug, Flug, Auto, Bus", required=True),
        "imageKeyword": ParamSpec(
            "string",
            "Ein englisches Stichwort für die Bildsuche (z.B. 'Tuscany landscape')",
            required=True,
        ),
        "flightPrice": ParamSpec("number", "Flugpreis in EUR, falls bekannt"),
        "accommodationPrice": ParamSpec("number", "Unterkunftspreis in EUR, falls bekannt"),
        "flightLink": ParamSpec("string", "Deep Link zum Flugangebot"),
        "accommodationLink": ParamSpec("string", "Deep Link zur Unterkunft"),
        "accommodationType": ParamSpec("string", "Art der Unterkunft (Hotel, Ferienwohnung, ...)"),
    },
)


TOOL_REGISTRY: Tuple[ToolSpec, ...] = (
    ToolSpec(
        name=REQUEST_PERSON_COUNT,
        description=(
            "Triggers a UI widget for the user to input the number of travelers. "
            "Use this whenever you need to know how many people are traveling."
        ),
    ),
    ToolSpec(
        name=REQUEST_TRIP_DETAILS,
        description=(
            "Triggers a detailed search form UI. Use this when the user wants to search for trips, "
            "even if the destination is vague (e.g., 'inspiration') or dates are flexible."
        ),
    ),
    ToolSpec(
        name=DISPLAY_RECOMMENDATIONS,
        description=(
            "Displays a list of visual trip cards to the user. Use this ONLY when you have found "
            "concrete travel options and want to present them."
        ),
        parameters={
            "recommendations": ParamSpec(
                "array",
                "2-3 concrete trip options",
                required=True,
                items=_RECOMMENDATION,
            ),
        },
    ),
    ToolSpec(
        name=GET_DESTINATION_WEATHER,
        description=(
            "Gets the current weather forecast for a destination using an external API. "
            "Use this when the user asks about weather, climate, or best time to travel."
        ),
        parameters={
            "locationName": ParamSpec("string", "Name of the city/region", required=True),
            "latitude": ParamSpec("number", "Latitude of the destination (approximate is fine)", required=True),
            "longitude": ParamSpec("number", "Longitude of the destination (approximate is fine)", required=True),
        },
    ),
    ToolSpec(
        name=SEARCH_FLIGHTS,
        description=(
            "Searches for REAL, LIVE flight offers using the Google Flights engine via SerpApi. "
            "Use this when the user asks for flight prices or availability."
        ),
        parameters={
            "origin": ParamSpec(
                "string", "3-letter IATA airport code (e.g., 'MUC', 'FRA'). DO NOT use city names.", required=True
            ),
            "destination": ParamSpec(
                "string", "3-letter IATA airport code (e.g., 'LHR', 'JFK'). DO NOT use city names.", required=True
            ),
            "departureDate": ParamSpec("string", "Date in YYYY-MM-DD format.", required=True),
            "returnDate": ParamSpec("string", "Optional return date in YYYY-MM-DD format."),
        },
    ),
    ToolSpec(
        name=SEARCH_HOTELS,
        description=(
            "Searches for REAL, LIVE hotel or vacation rental offers using the Google Hotels engine via SerpApi. "
            "Use this when the user asks for accommodation, hotels, or places to stay."
        ),
        parameters={
            "q": ParamSpec(
                "string", "Location query (e.g. 'Hotels in Paris', 'Berlin'). Can be a city name.", required=True
            ),
            "check_in_date": ParamSpec("string", "Check-in date in YYYY-MM-DD format.", required=True),
            "check_out_date": ParamSpec("string", "Check-out date in YYYY-MM-DD format.", required=True),
            "adults": ParamSpec("integer", "Number of adults (default is 1)."),
            "accommodation_type": ParamSpec(
                "string",
                "Kind of accommodation to search for.",
                enum=ACCOMMODATION_TYPES,
            ),
        },
    ),
)

_BY_NAME = {spec.name: spec for spec in TOOL_REGISTRY}


def get_tool(name: str) -> Optional[ToolSpec]:
    return _BY_NAME.get(name)


def tool_names() -> Tuple[str, ...]:
    return tuple(_BY_NAME)
