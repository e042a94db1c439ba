# Role: Settings + saved trips endpoints for the dashboard side of the app.
# The SerpApi key itself is never returned; clients only see whether one is configured.

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ecotravel.api.deps import get_store
from ecotravel.core.trip_store import TripStore
from ecotravel.models.trip import Trip
from ecotravel.utils.budget import summarize

router = APIRouter(tags=["trips"])


class SettingsView(BaseModel):
    annual_budget: float
    annual_co2_limit: float
    has_onboarded: bool
    has_api_key: bool


class SettingsUpdate(BaseModel):
    annual_budget: Optional[float] = Field(default=None, ge=0)
    annual_co2_limit: Optional[float] = Field(default=None, ge=0)
    has_onboarded: Optional[bool] = None
    # Empty string clears the stored key.
    api_key: Optional[str] = None


class Dashboard(BaseModel):
    annual_budget: float
    spent: float
    remaining_budget: float
    budget_progress_pct: float
    annual_co2_limit: float
    co2_used: float
    remaining_co2: float
    co2_progress_pct: float
    trip_count: int


def _view(trip_store: TripStore) -> SettingsView:
    settings = trip_store.load_settings()
    return SettingsView(
        annual_budget=settings.annual_budget,
        annual_co2_limit=settings.annual_co2_limit,
        has_onboarded=settings.has_onboarded,
        has_api_key=settings.has_api_key,
    )


@router.get("/settings", response_model=SettingsView)
def get_settings(trip_store: TripStore = Depends(get_store)) -> SettingsView:
    return _view(trip_store)


@router.put("/settings", response_model=SettingsView)
def update_settings(update: SettingsUpdate, trip_store: TripStore = Depends(get_store)) -> SettingsView:
    # New values apply to sessions started afterwards; running conversations keep their settings.
    changes = update.model_dump(exclude_none=True)
    if changes.get("api_key") is not None:
        changes["api_key"] = changes["api_key"].strip() or None
    settings = trip_store.load_settings().model_copy(update=changes)
    trip_store.save_settings(settings)
    return _view(trip_store)


@router.get("/trips", response_model=List[Trip])
def list_trips(trip_store: TripStore = Depends(get_store)) -> List[Trip]:
    return trip_store.load_trips()


@router.get("/dashboard", response_model=Dashboard)
def dashboard(trip_store: TripStore = Depends(get_store)) -> Dashboard:
    trips = trip_store.load_trips()
    summary = summarize(trip_store.load_settings(), trips)
    return Dashboard(**summary.to_dict(), trip_count=len(trips))
