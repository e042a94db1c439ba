# Role: Typed form payloads for the two input widgets. Each form knows the tool result it sends back to the
# model and the confirmation line shown in the chat after submission.

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecotravel.models.state import WidgetKind


class PersonCountForm(BaseModel):
    count: int = Field(ge=1, le=50)

    def to_tool_result(self) -> Dict[str, Any]:
        return {"count": self.count}

    def confirmation_text(self) -> str:
        return f"{self.count} Reisende ausgewählt."


class TripDetailsForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: str = ""
    trip_budget: Optional[float] = Field(default=None, alias="tripBudget", ge=0)
    is_flexible: bool = Field(default=False, alias="isFlexible")
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    duration_days: Optional[int] = Field(default=7, alias="durationDays", ge=1)
    preferred_season: str = Field(default="", alias="preferredSeason")

    @field_validator("trip_budget", "duration_days", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # Form inputs arrive as "" when left empty.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_tool_result(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def confirmation_text(self) -> str:
        dest = self.destination.strip() or "Inspiration (offen)"
        budget = f", Budget: {self.trip_budget:g}€" if self.trip_budget else ""
        if self.is_flexible:
            season = self.preferred_season.strip() or "Zeitraum flexibel"
            time = f"ca. {self.duration_days or '?'} Tage ({season})"
        else:
            time = f"{self.start_date} - {self.end_date}"
        return f"Suche: {dest} | {time}{budget}"


_FORMS = {
    WidgetKind.PERSON_COUNT: PersonCountForm,
    WidgetKind.TRIP_DETAILS: TripDetailsForm,
}


def parse_widget_form(widget: WidgetKind, values: Dict[str, Any]):
    # Raises pydantic.ValidationError for invalid input and KeyError for WidgetKind.NONE.
    return _FORMS[widget].model_validate(values or {})
