# Role: Thin HTTP adapter for the chat screen. Validates request/response shapes and delegates every turn to the
# session's ConversationController (business logic lives in core, not in the API layer).
# Each endpoint runs the whole turn (including tool calls) and returns the resulting state snapshot.

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from ecotravel.api.deps import ControllerBuilder, get_controller_builder, get_sessions, get_store, require_controller
from ecotravel.api.state import StateSnapshot, build_snapshot
from ecotravel.core.session_manager import SessionManager
from ecotravel.core.trip_store import TripStore
from ecotravel.models.state import WidgetKind
from ecotravel.models.trip import Trip
from ecotravel.models.widgets import parse_widget_form

router = APIRouter(prefix="/chat", tags=["chat"])

_BUSY_DETAIL = "The conversation is busy or waiting for widget input."


class StartRequest(BaseModel):
    session_id: str


class MessageRequest(BaseModel):
    session_id: str
    user_message: str


class WidgetRequest(BaseModel):
    session_id: str
    widget: WidgetKind
    values: Dict[str, Any] = Field(default_factory=dict)


class SelectRequest(BaseModel):
    session_id: str
    message_id: str
    index: int = Field(ge=0)


class AcceptRequest(BaseModel):
    session_id: str


class AcceptResponse(BaseModel):
    trip: Trip
    state: StateSnapshot


@router.post("/start", response_model=StateSnapshot)
def start(
    req: StartRequest,
    sessions: SessionManager = Depends(get_sessions),
    trip_store: TripStore = Depends(get_store),
    builder: ControllerBuilder = Depends(get_controller_builder),
) -> StateSnapshot:
    # 1) Create (or reuse) the controller for this session
    # 2) Run the opening turn once; later calls just return the snapshot
    sessions.cleanup_expired()
    controller = sessions.get_or_create(req.session_id, lambda: builder(trip_store))
    if not controller.started and not controller.start():
        raise HTTPException(status_code=409, detail=_BUSY_DETAIL)
    return build_snapshot(req.session_id, controller)


@router.post("/message", response_model=StateSnapshot)
def message(req: MessageRequest, sessions: SessionManager = Depends(get_sessions)) -> StateSnapshot:
    controller = require_controller(sessions, req.session_id)
    if not req.user_message.strip():
        raise HTTPException(status_code=422, detail="user_message must not be empty.")
    if not controller.send_user_message(req.user_message):
        raise HTTPException(status_code=409, detail=_BUSY_DETAIL)
    return build_snapshot(req.session_id, controller)


@router.post("/widget", response_model=StateSnapshot)
def widget(req: WidgetRequest, sessions: SessionManager = Depends(get_sessions)) -> StateSnapshot:
    # 1) The submitted widget must be the one the conversation waits for
    # 2) Form errors -> 422 (widget stays open)
    # 3) Controller feeds the values back into the tool loop
    controller = require_controller(sessions, req.session_id)
    if req.widget == WidgetKind.NONE or controller.state.active_widget != req.widget:
        raise HTTPException(status_code=409, detail=f"Widget '{req.widget.value}' is not open.")

    try:
        parse_widget_form(req.widget, req.values)
    except ValidationError as e:
        detail = e.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=detail) from e

    if not controller.submit_widget(req.widget, req.values):
        raise HTTPException(status_code=409, detail=_BUSY_DETAIL)
    return build_snapshot(req.session_id, controller)


@router.post("/select", response_model=StateSnapshot)
def select(req: SelectRequest, sessions: SessionManager = Depends(get_sessions)) -> StateSnapshot:
    controller = require_controller(sessions, req.session_id)
    message = controller.state.find_message(req.message_id)
    if message is None or not message.recommendations or req.index >= len(message.recommendations):
        raise HTTPException(status_code=404, detail="Recommendation not found.")
    if not controller.select_recommendation(req.message_id, req.index):
        raise HTTPException(status_code=409, detail=_BUSY_DETAIL)
    return build_snapshot(req.session_id, controller)


@router.post("/accept", response_model=AcceptResponse)
def accept(
    req: AcceptRequest,
    sessions: SessionManager = Depends(get_sessions),
    trip_store: TripStore = Depends(get_store),
) -> AcceptResponse:
    # Key line: the controller creates the Trip; persisting it is the application's job.
    controller = require_controller(sessions, req.session_id)
    trip = controller.accept_proposed_trip()
    if trip is None:
        raise HTTPException(status_code=409, detail="There is no proposed trip to accept.")
    trip_store.add_trip(trip)
    return AcceptResponse(trip=trip, state=build_snapshot(req.session_id, controller))
