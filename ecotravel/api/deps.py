# Role: Shared API singletons (settings/trip store + session registry) and the controller factory.
# Routers take these through Depends so tests can swap them via app.dependency_overrides.

from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

from ecotravel.core.controller import ConversationController
from ecotravel.core.session_manager import SessionManager
from ecotravel.core.trip_store import TripStore

ControllerBuilder = Callable[[TripStore], ConversationController]

store = TripStore()
sessions = SessionManager()


def build_controller(trip_store: TripStore) -> ConversationController:
    # Key line: each new session snapshots the current settings and saved trips.
    return ConversationController(settings=trip_store.load_settings(), trips=trip_store.load_trips())


def get_store() -> TripStore:
    return store


def get_sessions() -> SessionManager:
    return sessions


def get_controller_builder() -> ControllerBuilder:
    return build_controller


def require_controller(session_manager: SessionManager, session_id: str) -> ConversationController:
    controller = session_manager.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'. Call /chat/start first.")
    return controller
