# Role: State-change notifications from the controller to whatever renders the conversation (CLI, API, UI).
# The controller never renders anything itself; listeners subscribe and react to events.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List


class EventKind(str, Enum):
    MESSAGE_ADDED = "message_added"
    MESSAGE_UPDATED = "message_updated"
    MESSAGE_REMOVED = "message_removed"
    WIDGET_OPENED = "widget_opened"
    WIDGET_CLOSED = "widget_closed"
    BUSY_CHANGED = "busy_changed"
    STATUS = "status"
    SOURCES_UPDATED = "sources_updated"
    TRIP_PROPOSED = "trip_proposed"
    TRIP_CREATED = "trip_created"


@dataclass(frozen=True)
class ChatEvent:
    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[ChatEvent], None]


class EventEmitter:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, kind: EventKind, **payload: Any) -> None:
        event = ChatEvent(kind=kind, payload=payload)
        for listener in list(self._listeners):
            listener(event)
