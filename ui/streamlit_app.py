# Role: Streamlit chat UI.
# - Backend is authoritative (every action returns the full conversation snapshot).
# - Main column: chat, recommendation cards, open widget, proposed trip, sources.
# - Sidebar: budget / CO2 dashboard and settings.

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import requests
import streamlit as st

BACKEND_URL = "http://127.0.0.1:8000"
TURN_TIMEOUT = 120


# ----------------------------
# Session helpers
# ----------------------------
def ensure_session() -> None:
    if "session_id" not in st.session_state:
        st.session_state["session_id"] = str(uuid.uuid4())
    if "snapshot" not in st.session_state:
        st.session_state["snapshot"] = None
    if "error" not in st.session_state:
        st.session_state["error"] = None


def reset_session() -> None:
    st.session_state["session_id"] = str(uuid.uuid4())
    st.session_state["snapshot"] = None
    st.session_state["error"] = None


# ----------------------------
# Backend calls
# ----------------------------
def _post(path: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        resp = requests.post(f"{BACKEND_URL}{path}", json=payload, timeout=TURN_TIMEOUT)
    except requests.RequestException:
        st.session_state["error"] = f"Das Backend ist nicht erreichbar. Läuft die API auf {BACKEND_URL}?"
        return None

    if resp.status_code >= 400:
        try:
            detail = resp.json().get("detail")
        except ValueError:
            detail = resp.text
        st.session_state["error"] = f"Anfrage fehlgeschlagen ({resp.status_code}): {detail}"
        return None

    st.session_state["error"] = None
    return resp.json()


def _get(path: str) -> Optional[Any]:
    try:
        r = requests.get(f"{BACKEND_URL}{path}", timeout=10)
        if r.status_code != 200:
            return None
        return r.json()
    except requests.RequestException:
        return None


def chat_action(path: str, **payload: Any) -> None:
    # Runs one chat action and stores the returned snapshot.
    body = {"session_id": st.session_state["session_id"], **payload}
    with st.spinner("Denke nach..."):
        data = _post(f"/chat/{path}", body)
    if data is None:
        return
    st.session_state["snapshot"] = data.get("state", data)


def start_if_needed() -> None:
    if st.session_state["snapshot"] is None and st.session_state["error"] is None:
        chat_action("start")


# ----------------------------
# UI polish
# ----------------------------
def inject_css() -> None:
    st.markdown(
        """
<style>
.block-container { max-width: 1200px; padding-top: 2rem; padding-bottom: 2rem; }

.stButton>button {
  border-radius: 12px !important;
  padding: 0.60rem 0.90rem !important;
  font-weight: 650 !important;
}

.et-card {
  border: 1px solid rgba(49, 51, 63, 0.14);
  border-radius: 16px;
  padding: 14px 14px;
  background: rgba(255, 255, 255, 0.02);
  margin-bottom: 10px;
}

.et-title { font-size: 1.02rem; font-weight: 750; margin-bottom: 6px; }
.et-k { font-size: 0.85rem; opacity: 0.72; }

div[data-testid="stChatInput"] textarea { min-height: 44px; }
</style>
""",
        unsafe_allow_html=True,
    )


# ----------------------------
# Formatting helpers
# ----------------------------
def _fmt_money(v: Any) -> str:
    try:
        return f"{float(v):,.0f} €".replace(",", ".")
    except (TypeError, ValueError):
        return "—"


def _fmt_co2(v: Any) -> str:
    try:
        return f"{float(v):,.0f} kg CO2".replace(",", ".")
    except (TypeError, ValueError):
        return "—"


# ----------------------------
# Sidebar: dashboard + settings
# ----------------------------
def render_dashboard() -> None:
    dash = _get("/dashboard")
    if not dash:
        st.sidebar.info("Dashboard nicht verfügbar.")
        return

    st.sidebar.markdown(f"**Budget** {_fmt_money(dash['spent'])} / {_fmt_money(dash['annual_budget'])}")
    st.sidebar.progress(min(1.0, dash["budget_progress_pct"] / 100))
    st.sidebar.markdown(f"**CO2** {_fmt_co2(dash['co2_used'])} / {_fmt_co2(dash['annual_co2_limit'])}")
    st.sidebar.progress(min(1.0, dash["co2_progress_pct"] / 100))

    trips = _get("/trips") or []
    if trips:
        st.sidebar.markdown("**Geplante Reisen**")
        for trip in trips:
            st.sidebar.caption(
                f"{trip['destination']} · {trip['start_date']} – {trip['end_date']} · "
                f"{_fmt_money(trip['estimated_cost'])}"
            )


def render_settings() -> None:
    settings = _get("/settings") or {}
    with st.sidebar.expander("Einstellungen"):
        with st.form("settings_form"):
            budget = st.number_input(
                "Jahresbudget (€)", min_value=0.0, value=float(settings.get("annual_budget", 5000)), step=100.0
            )
            co2 = st.number_input(
                "CO2-Limit (kg)", min_value=0.0, value=float(settings.get("annual_co2_limit", 2000)), step=50.0
            )
            key_hint = "hinterlegt" if settings.get("has_api_key") else "nicht hinterlegt"
            api_key = st.text_input(f"SerpApi-Key ({key_hint})", type="password")
            if st.form_submit_button("Speichern"):
                payload: Dict[str, Any] = {"annual_budget": budget, "annual_co2_limit": co2, "has_onboarded": True}
                if api_key.strip():
                    payload["api_key"] = api_key.strip()
                try:
                    requests.put(f"{BACKEND_URL}/settings", json=payload, timeout=10).raise_for_status()
                    st.success("Gespeichert. Gilt ab dem nächsten neuen Chat.")
                except requests.RequestException:
                    st.error("Einstellungen konnten nicht gespeichert werden.")


def render_sidebar(busy: bool) -> None:
    st.sidebar.title("EcoTravel")
    if st.sidebar.button("📝 Neuer Chat", use_container_width=True, disabled=busy):
        reset_session()
        st.rerun()

    st.sidebar.divider()
    render_dashboard()
    st.sidebar.divider()
    render_settings()


# ----------------------------
# Chat
# ----------------------------
def render_recommendations(message: Dict[str, Any], disabled: bool) -> None:
    recs: List[Dict[str, Any]] = message.get("recommendations") or []
    cols = st.columns(len(recs))
    for index, (col, rec) in enumerate(zip(cols, recs)):
        with col:
            st.markdown(
                f"""
<div class="et-card">
<div class="et-title">{rec['title']}</div>
<div class="et-k">📍 {rec['destination']} · {rec['transportMode']}</div>
<div>{_fmt_money(rec['totalCost'])} · {_fmt_co2(rec['co2Kg'])}</div>
</div>
""",
                unsafe_allow_html=True,
            )
            if rec.get("description"):
                st.caption(rec["description"])
            for label, key in (("✈️ Flug", "flightLink"), ("🏨 Unterkunft", "accommodationLink")):
                if rec.get(key):
                    st.markdown(f"[{label}]({rec[key]})")
            if st.button("Auswählen", key=f"select_{message['id']}_{index}", disabled=disabled):
                chat_action("select", message_id=message["id"], index=index)
                st.rerun()


def render_chat(snapshot: Dict[str, Any], disabled: bool) -> None:
    for msg in snapshot.get("messages", []):
        role = "assistant" if msg["role"] == "model" else "user"
        with st.chat_message(role):
            if msg.get("is_system_action"):
                st.caption(msg["text"])
            else:
                st.markdown(msg["text"])
            if msg.get("recommendations"):
                render_recommendations(msg, disabled)


def render_person_count_widget() -> None:
    with st.form("person_count_form"):
        count = st.number_input("Wie viele Personen reisen mit?", min_value=1, max_value=50, value=2, step=1)
        if st.form_submit_button("Bestätigen"):
            chat_action("widget", widget="person_count", values={"count": int(count)})
            st.rerun()


def render_trip_details_widget() -> None:
    with st.form("trip_details_form"):
        destination = st.text_input("Reiseziel (leer lassen für Inspiration)")
        budget = st.number_input("Budget (€)", min_value=0.0, value=0.0, step=50.0)
        flexible = st.checkbox("Zeitraum ist flexibel")
        today = date.today()
        start = st.date_input("Startdatum", value=today + timedelta(days=30))
        end = st.date_input("Enddatum", value=today + timedelta(days=37))
        duration = st.number_input("Dauer (Tage)", min_value=1, value=7, step=1)
        season = st.text_input("Bevorzugte Jahreszeit")

        if st.form_submit_button("Suchen"):
            values: Dict[str, Any] = {
                "destination": destination,
                "tripBudget": budget or None,
                "isFlexible": flexible,
            }
            if flexible:
                values.update({"durationDays": int(duration), "preferredSeason": season})
            else:
                values.update({"startDate": start.isoformat(), "endDate": end.isoformat()})
            chat_action("widget", widget="trip_details", values=values)
            st.rerun()


_WIDGETS = {
    "person_count": render_person_count_widget,
    "trip_details": render_trip_details_widget,
}


def render_proposed_trip(trip: Dict[str, Any], disabled: bool) -> None:
    st.markdown(
        f"""
<div class="et-card">
<div class="et-title">🧳 Reisevorschlag: {trip.get('destination') or '—'}</div>
<div class="et-k">{trip.get('startDate') or 'TBD'} – {trip.get('endDate') or 'TBD'} · {trip.get('transportMode') or '—'}</div>
<div>{_fmt_money(trip.get('estimatedCost'))} · {_fmt_co2(trip.get('estimatedCo2'))}</div>
</div>
""",
        unsafe_allow_html=True,
    )
    if st.button("Reise speichern", disabled=disabled):
        with st.spinner("Speichere..."):
            data = _post("/chat/accept", {"session_id": st.session_state["session_id"]})
        if data is not None:
            st.session_state["snapshot"] = data["state"]
        st.rerun()


def render_sources(sources: List[Dict[str, Any]]) -> None:
    with st.expander(f"Quellen ({len(sources)})"):
        for source in sources:
            st.markdown(f"- [{source['title']}]({source['uri']})")


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    st.set_page_config(page_title="EcoTravel", page_icon="🌍", layout="wide")
    inject_css()

    st.title("🌍 EcoTravel Assistant")
    st.caption("Nachhaltige Reisen planen: Inspiration, Flüge, Unterkünfte, Wetter und dein CO2-Budget.")

    ensure_session()
    start_if_needed()

    snapshot = st.session_state["snapshot"] or {}
    busy = bool(snapshot.get("is_busy"))
    widget = snapshot.get("active_widget", "none")

    render_sidebar(busy)

    if st.session_state["error"]:
        st.error(st.session_state["error"])

    render_chat(snapshot, disabled=busy or widget != "none")

    render_widget = _WIDGETS.get(widget)
    if render_widget is not None:
        render_widget()

    if snapshot.get("proposed_trip"):
        render_proposed_trip(snapshot["proposed_trip"], disabled=busy)

    if snapshot.get("grounding_sources"):
        render_sources(snapshot["grounding_sources"])

    user_input = st.chat_input(
        "Wohin soll es gehen?",
        disabled=busy or widget != "none" or not snapshot.get("started"),
    )
    if user_input:
        with st.chat_message("user"):
            st.write(user_input)
        chat_action("message", user_message=user_input)
        st.rerun()


if __name__ == "__main__":
    main()
