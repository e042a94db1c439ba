# Role: Read-only transparency endpoint for the UI.
# Does NOT change any flow logic. Only exposes the current conversation snapshot by session_id.

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ecotravel.api.deps import get_sessions, require_controller
from ecotravel.core.controller import ConversationController
from ecotravel.core.session_manager import SessionManager
from ecotravel.models.message import Message
from ecotravel.models.state import GroundingSource, WidgetKind
from ecotravel.models.trip import TripProposal

router = APIRouter(tags=["state"])


class StateSnapshot(BaseModel):
    session_id: str
    started: bool
    is_busy: bool
    active_widget: WidgetKind
    pending_tool: Optional[str] = None
    messages: List[Message]
    proposed_trip: Optional[TripProposal] = None
    grounding_sources: List[GroundingSource]


def build_snapshot(session_id: str, controller: ConversationController) -> StateSnapshot:
    state = controller.state
    return StateSnapshot(
        session_id=session_id,
        started=controller.started,
        is_busy=state.is_busy,
        active_widget=state.active_widget,
        pending_tool=state.pending_tool_call.name if state.pending_tool_call else None,
        messages=list(state.messages),
        proposed_trip=state.proposed_trip,
        grounding_sources=list(state.grounding_sources),
    )


@router.get("/state/{session_id}", response_model=StateSnapshot)
def get_state(session_id: str, sessions: SessionManager = Depends(get_sessions)) -> StateSnapshot:
    controller = require_controller(sessions, session_id)
    return build_snapshot(session_id, controller)
