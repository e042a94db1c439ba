from conftest import FakeFlightClient, FakeHotelClient, FakeWeatherClient

from ecotravel.models.state import ConversationState, WidgetKind
from ecotravel.models.tool_call import OutcomeKind, ToolCall, is_error
from ecotravel.tools.dispatcher import RECOMMENDATIONS_INTRO, normalize_vacation_rental_query
from ecotravel.tools.flight_client import FlightToolResult
from ecotravel.tools.weather_client import WeatherToolResult


def _flight_call(**args):
    base = {"origin": "muc", "destination": "lis", "departureDate": "2026-11-02"}
    base.update(args)
    return ToolCall(name="searchFlights", args=base, call_id="f-1")


def _hotel_call(**args):
    base = {"q": "Lissabon", "check_in_date": "2026-11-02", "check_out_date": "2026-11-06", "adults": 2}
    base.update(args)
    return ToolCall(name="searchHotels", args=base, call_id="h-1")


def test_widget_tools_open_widget_and_suspend(settings, make_dispatcher):
    dispatcher = make_dispatcher(settings)
    state = ConversationState()

    outcome = dispatcher.dispatch(ToolCall(name="requestTripDetails", args={}, call_id="t-9"), state)

    assert outcome.kind == OutcomeKind.SUSPEND
    assert outcome.widget == WidgetKind.TRIP_DETAILS
    assert state.active_widget == WidgetKind.TRIP_DETAILS
    assert state.pending_tool_call.call_id == "t-9"


def test_pending_call_and_widget_change_together(settings, make_dispatcher):
    """pending_tool_call is set exactly when a widget is open."""
    dispatcher = make_dispatcher(settings)
    state = ConversationState()
    calls = [
        ToolCall(name="getDestinationWeather", args={"locationName": "Rom", "latitude": 41.9, "longitude": 12.5}),
        ToolCall(name="requestPersonCount", args={}),
        ToolCall(name="unknownTool", args={}),
    ]
    for call in calls:
        dispatcher.dispatch(call, state)
        assert (state.pending_tool_call is not None) == state.widget_open

    state.close_widget()
    assert state.pending_tool_call is None and not state.widget_open


def test_display_recommendations_attaches_cards(settings, make_dispatcher):
    dispatcher = make_dispatcher(settings)
    state = ConversationState()
    card = {
        "title": "Toskana per Zug",
        "destination": "Florenz",
        "totalCost": 640,
        "co2Kg": 35,
        "transportMode": "Zug",
        "imageKeyword": "Tuscany landscape",
    }

    outcome = dispatcher.dispatch(ToolCall(name="displayRecommendations", args={"recommendations": [card]}), state)

    assert outcome.kind == OutcomeKind.IMMEDIATE
    assert outcome.result == "displayed"
    assert state.messages[-1].text == RECOMMENDATIONS_INTRO
    assert state.messages[-1].recommendations[0].destination == "Florenz"
    assert outcome.appended == [state.messages[-1]]


def test_display_recommendations_rejects_empty_list(settings, make_dispatcher):
    state = ConversationState()
    outcome = make_dispatcher(settings).dispatch(
        ToolCall(name="displayRecommendations", args={"recommendations": []}), state
    )
    assert outcome.result.startswith("ERROR:")
    assert is_error(outcome.result)
    assert state.messages == []


def test_unknown_tool_yields_error(settings, make_dispatcher):
    outcome = make_dispatcher(settings).dispatch(ToolCall(name="bookTrain", args={}), ConversationState())
    assert outcome.kind == OutcomeKind.IMMEDIATE
    assert outcome.result.startswith("ERROR:")
    assert "bookTrain" in outcome.result
    assert "searchFlights" in outcome.result


def test_weather_success_and_failure(settings, make_dispatcher):
    ok = make_dispatcher(settings).dispatch(
        ToolCall(name="getDestinationWeather", args={"locationName": "Lissabon", "latitude": 38.7, "longitude": -9.1}),
        ConversationState(),
    )
    assert ok.kind == OutcomeKind.ASYNC_FETCH
    assert ok.result["location"] == "Lissabon"

    failing = FakeWeatherClient(WeatherToolResult(ok=False, data={}, error="timeout"))
    bad = make_dispatcher(settings, weather=failing).dispatch(
        ToolCall(name="getDestinationWeather", args={"locationName": "X", "latitude": 1, "longitude": 2}),
        ConversationState(),
    )
    assert bad.result.startswith("ERROR:")
    assert "timeout" in bad.result


def test_flights_uppercases_codes_and_passes_key(settings, make_dispatcher):
    flights = FakeFlightClient()
    outcome = make_dispatcher(settings, flights=flights).dispatch(
        _flight_call(returnDate="2026-11-09"), ConversationState()
    )

    assert not is_error(outcome.result)
    assert flights.calls == [
        {
            "api_key": "test-key",
            "origin": "MUC",
            "destination": "LIS",
            "departure_date": "2026-11-02",
            "return_date": "2026-11-09",
        }
    ]


def test_flights_past_date_never_calls_network(settings, make_dispatcher):
    flights = FakeFlightClient()
    state = ConversationState()

    outcome = make_dispatcher(settings, flights=flights).dispatch(_flight_call(departureDate="2026-10-18"), state)

    assert flights.calls == []
    assert outcome.result.startswith("ERROR:")
    assert "2026-10-19" in outcome.result
    assert "2026-10-19" in state.messages[-1].text


def test_flights_return_before_departure(settings, make_dispatcher):
    flights = FakeFlightClient()
    outcome = make_dispatcher(settings, flights=flights).dispatch(
        _flight_call(returnDate="2026-11-01"), ConversationState()
    )
    assert flights.calls == []
    assert outcome.result.startswith("ERROR:")


def test_flights_invalid_date_has_hint(settings, make_dispatcher):
    outcome = make_dispatcher(settings).dispatch(_flight_call(departureDate="2. November"), ConversationState())
    assert outcome.result.startswith("ERROR:")
    assert "HINT" in outcome.result


def test_flights_provider_error_is_fed_back(settings, make_dispatcher):
    failing = FakeFlightClient(FlightToolResult(ok=False, data={}, error="Invalid departure_id. HINT: Use IATA"))
    outcome = make_dispatcher(settings, flights=failing).dispatch(_flight_call(), ConversationState())
    assert outcome.result.startswith("ERROR:")
    assert "IATA" in outcome.result


def test_search_without_key_informs_user(no_key_settings, make_dispatcher):
    flights = FakeFlightClient()
    hotels = FakeHotelClient()
    dispatcher = make_dispatcher(no_key_settings, flights=flights, hotels=hotels)

    for call in (_flight_call(), _hotel_call()):
        state = ConversationState()
        outcome = dispatcher.dispatch(call, state)
        assert outcome.result.startswith("ERROR:")
        assert state.messages[-1].role == "model"
        assert "Einstellungen" in state.messages[-1].text
        assert outcome.appended == [state.messages[-1]]

    assert flights.calls == [] and hotels.calls == []


def test_hotels_vacation_rental_prefixes_query(settings, make_dispatcher):
    hotels = FakeHotelClient()
    make_dispatcher(settings, hotels=hotels).dispatch(
        _hotel_call(accommodation_type="vacation_rental"), ConversationState()
    )

    call = hotels.calls[0]
    assert call["query"] == "Ferienwohnung Lissabon"
    assert call["vacation_rentals"] is True
    assert call["adults"] == 2


def test_hotels_plain_search(settings, make_dispatcher):
    hotels = FakeHotelClient()
    outcome = make_dispatcher(settings, hotels=hotels).dispatch(_hotel_call(adults="x"), ConversationState())

    assert not is_error(outcome.result)
    assert hotels.calls[0]["query"] == "Lissabon"
    assert hotels.calls[0]["vacation_rentals"] is False
    assert hotels.calls[0]["adults"] == 1


def test_hotels_checkout_must_follow_checkin(settings, make_dispatcher):
    hotels = FakeHotelClient()
    outcome = make_dispatcher(settings, hotels=hotels).dispatch(
        _hotel_call(check_out_date="2026-11-02"), ConversationState()
    )
    assert hotels.calls == []
    assert outcome.result.startswith("ERROR:")


def test_normalize_vacation_rental_query_is_idempotent():
    assert normalize_vacation_rental_query("Berlin") == "Ferienwohnung Berlin"
    assert normalize_vacation_rental_query("ferienwohnung am See") == "ferienwohnung am See"
