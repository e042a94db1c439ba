# Role: Prompt + response schema for trip extraction. The model either returns a Trip-shaped JSON object or the
# literal NULL sentinel when no trip has been agreed on yet.

from __future__ import annotations

from typing import Any, Dict

NULL_SENTINEL = "NULL"

TRIP_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "destination": {"type": "STRING", "description": "Das Hauptreiseziel"},
        "estimatedCost": {"type": "NUMBER", "description": "Geschätzte Gesamtkosten in Euro"},
        "estimatedCo2": {"type": "NUMBER", "description": "Geschätzter CO2-Ausstoß in kg"},
        "startDate": {"type": "STRING", "description": "Startdatum (YYYY-MM-DD) oder 'TBD' falls noch flexibel"},
        "endDate": {"type": "STRING", "description": "Enddatum (YYYY-MM-DD) oder 'TBD' falls noch flexibel"},
        "transportMode": {"type": "STRING", "description": "Hauptverkehrsmittel (Flug, Bahn, Auto, etc.)"},
        "notes": {"type": "STRING", "description": "Kurze Zusammenfassung der Reise"},
    },
    "required": ["destination", "estimatedCost", "estimatedCo2", "transportMode"],
}


def build_extraction_prompt(conversation_text: str) -> str:
    return f"""
Basierend auf dem folgenden Chat-Verlauf, extrahiere die Details der final vereinbarten Reise im JSON-Format.
Wenn keine Reise final vereinbart wurde, antworte mit {NULL_SENTINEL}.

Chat-Verlauf:
{conversation_text}
""".strip()
