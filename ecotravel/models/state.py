# Role: Per-conversation state container owned by one ConversationController.
# Holds the message list plus the small "loop memory": pending tool call, active widget, busy flag,
# proposed trip, and the grounding sources of the latest model turn.

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ecotravel.models.message import Message
from ecotravel.models.trip import TripProposal


class WidgetKind(str, Enum):
    NONE = "none"
    PERSON_COUNT = "person_count"
    TRIP_DETAILS = "trip_details"


class PendingToolCall(BaseModel):
    name: str
    call_id: str


class GroundingSource(BaseModel):
    title: str
    uri: str


class ConversationState(BaseModel):
    messages: List[Message] = Field(default_factory=list)

    # Key line: pending_tool_call and active_widget only change together (open_widget / close_widget).
    pending_tool_call: Optional[PendingToolCall] = None
    active_widget: WidgetKind = WidgetKind.NONE

    is_busy: bool = False
    proposed_trip: Optional[TripProposal] = None
    grounding_sources: List[GroundingSource] = Field(default_factory=list)

    @property
    def widget_open(self) -> bool:
        return self.active_widget != WidgetKind.NONE

    def open_widget(self, widget: WidgetKind, tool_name: str, call_id: str) -> None:
        if widget == WidgetKind.NONE:
            raise ValueError("open_widget requires a concrete widget kind")
        self.pending_tool_call = PendingToolCall(name=tool_name, call_id=call_id)
        self.active_widget = widget

    def close_widget(self) -> Optional[PendingToolCall]:
        pending = self.pending_tool_call
        self.pending_tool_call = None
        self.active_widget = WidgetKind.NONE
        return pending

    def find_message(self, message_id: str) -> Optional[Message]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None
