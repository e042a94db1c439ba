# Role: Small typed contracts for the tool loop. ToolCall is what the model asks for, ToolResult is the delta
# sent back into the chat session, ToolOutcome is the dispatcher's verdict that drives the controller.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ecotravel.models.message import Message
from ecotravel.models.state import WidgetKind

ERROR_PREFIX = "ERROR:"

ToolPayload = Union[Dict[str, Any], List[Any], str]


@dataclass(frozen=True)
class ToolCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    call_id: str = "unknown"


@dataclass(frozen=True)
class ToolResult:
    name: str
    result: ToolPayload
    call_id: str = "unknown"


class OutcomeKind(str, Enum):
    SUSPEND = "suspend"
    IMMEDIATE = "immediate"
    ASYNC_FETCH = "async_fetch"


@dataclass(frozen=True)
class ToolOutcome:
    kind: OutcomeKind
    result: Optional[ToolPayload] = None
    widget: WidgetKind = WidgetKind.NONE
    # Messages the dispatcher appended to the conversation (so the controller can notify observers).
    appended: List[Message] = field(default_factory=list)

    @classmethod
    def suspend(cls, widget: WidgetKind) -> "ToolOutcome":
        return cls(kind=OutcomeKind.SUSPEND, widget=widget)

    @classmethod
    def immediate(cls, result: ToolPayload, appended: Optional[List[Message]] = None) -> "ToolOutcome":
        return cls(
            kind=OutcomeKind.IMMEDIATE,
            result=result,
            appended=list(appended or []),
        )

    @classmethod
    def fetched(cls, result: ToolPayload, appended: Optional[List[Message]] = None) -> "ToolOutcome":
        return cls(
            kind=OutcomeKind.ASYNC_FETCH,
            result=result,
            appended=list(appended or []),
        )


def error_result(detail: str) -> str:
    return f"{ERROR_PREFIX} {detail}"


def is_error(result: Optional[ToolPayload]) -> bool:
    return isinstance(result, str) and result.startswith(ERROR_PREFIX)
