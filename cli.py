# Role: Local developer CLI to talk to the ConversationController without the web UI.
# Streams model text as it arrives, asks for widget input on the terminal and saves accepted trips to the store.

from __future__ import annotations

from typing import Any, Dict

import ecotravel.config
ecotravel.config.load_env()

from ecotravel.core.controller import ConversationController
from ecotravel.core.events import ChatEvent, EventKind
from ecotravel.core.trip_store import TripStore
from ecotravel.models.state import WidgetKind
from ecotravel.utils.budget import summarize


def _print_event(event: ChatEvent) -> None:
    # Listener: renders controller events as terminal output.
    payload = event.payload
    if event.kind == EventKind.MESSAGE_ADDED:
        message = payload["message"]
        if message.role == "model":
            print("\nAssistant: ", end="", flush=True)
            if message.text:
                print(message.text, end="", flush=True)
        elif message.is_system_action:
            print(f"\n[{message.text}]")
        if message.recommendations:
            print()
            for i, rec in enumerate(message.recommendations, start=1):
                print(
                    f"  {i}) {rec.title} | {rec.destination} | {rec.total_cost:g}€ | "
                    f"{rec.co2_kg:g} kg CO2 | {rec.transport_mode}"
                )
    elif event.kind == EventKind.MESSAGE_UPDATED:
        print(payload["fragment"], end="", flush=True)
    elif event.kind == EventKind.STATUS:
        print(f"\n({payload['text']})")
    elif event.kind == EventKind.SOURCES_UPDATED and payload["sources"]:
        print("\nQuellen:")
        for source in payload["sources"]:
            print(f"  - {source.title}: {source.uri}")
    elif event.kind == EventKind.TRIP_PROPOSED:
        trip = payload["trip"]
        print(f"\n[Reisevorschlag: {trip.destination} | {trip.estimated_cost or 0:g}€ | "
              f"{trip.estimated_co2 or 0:g} kg CO2] -> /accept zum Speichern")


def _ask_person_count() -> Dict[str, Any]:
    return {"count": input("\nWie viele Personen reisen mit? ").strip()}


def _ask_trip_details() -> Dict[str, Any]:
    print("\nReisedetails (leer lassen, wenn offen):")
    values: Dict[str, Any] = {
        "destination": input("  Ziel: ").strip(),
        "tripBudget": input("  Budget (€): ").strip(),
    }
    flexible = input("  Zeitraum flexibel? [j/N]: ").strip().lower() in {"j", "ja", "y", "yes"}
    values["isFlexible"] = flexible
    if flexible:
        values["durationDays"] = input("  Dauer (Tage): ").strip()
        values["preferredSeason"] = input("  Bevorzugte Jahreszeit: ").strip()
    else:
        values["startDate"] = input("  Startdatum (YYYY-MM-DD): ").strip()
        values["endDate"] = input("  Enddatum (YYYY-MM-DD): ").strip()
    return values


_WIDGET_PROMPTS = {
    WidgetKind.PERSON_COUNT: _ask_person_count,
    WidgetKind.TRIP_DETAILS: _ask_trip_details,
}


def _show_dashboard(store: TripStore) -> None:
    trips = store.load_trips()
    summary = summarize(store.load_settings(), trips)
    print(f"\nBudget: {summary.spent:g}€ / {summary.annual_budget:g}€ ({summary.budget_progress_pct:g}%)")
    print(f"CO2:    {summary.co2_used:g} kg / {summary.annual_co2_limit:g} kg ({summary.co2_progress_pct:g}%)")
    for trip in trips:
        print(f"  - {trip.destination} ({trip.start_date} - {trip.end_date}) {trip.estimated_cost:g}€")


def _select(controller: ConversationController, arg: str) -> None:
    # "/select 2" picks the second card of the latest recommendation message.
    cards = [m for m in controller.state.messages if m.recommendations]
    if not cards or not arg.isdigit():
        print("Keine Auswahl möglich.")
        return
    if not controller.select_recommendation(cards[-1].id, int(arg) - 1):
        print("Keine Auswahl möglich.")


def main() -> None:
    # 1) Build controller from stored settings + trips
    # 2) Run the opening turn
    # 3) Loop: widget open -> ask form values, else read user input / commands
    print("EcoTravel CLI")
    print("Commands: /select <n>, /accept, /dashboard, /exit")
    print("-" * 50)

    store = TripStore()
    controller = ConversationController(settings=store.load_settings(), trips=store.load_trips())
    controller.subscribe(_print_event)
    controller.start()

    while True:
        try:
            widget = controller.state.active_widget
            if widget != WidgetKind.NONE:
                controller.submit_widget(widget, _WIDGET_PROMPTS[widget]())
                continue

            user_message = input("\n\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not user_message:
            continue

        cmd, _, arg = user_message.partition(" ")
        cmd = cmd.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            break

        if cmd == "/accept":
            trip = controller.accept_proposed_trip()
            if trip is None:
                print("Es gibt noch keinen Reisevorschlag.")
            else:
                store.add_trip(trip)
            continue

        if cmd == "/dashboard":
            _show_dashboard(store)
            continue

        if cmd == "/select":
            _select(controller, arg.strip())
            continue

        if not controller.send_user_message(user_message):
            print("(Nachricht wurde nicht gesendet.)")

    controller.close()


if __name__ == "__main__":
    main()
