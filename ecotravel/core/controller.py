# Role: Orchestrator for one chat screen. Owns ConversationState and runs the tool loop:
# send (with retry) -> stream text into a model message -> dispatch the first tool call -> feed the tool result
# back into the same session -> repeat until a plain-text turn or a widget suspends the loop.
# Trip extraction runs in the background after substantial dialogue and never blocks a turn.

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Sequence, Union

from pydantic import ValidationError

import ecotravel.config as config
from ecotravel.core.events import EventEmitter, EventKind, Listener
from ecotravel.errors import RateLimited
from ecotravel.llm.chat_transport import ChatInput, ChatSession, ChatTransport, StreamHandle, TurnResult
from ecotravel.llm.gemini_client import GeminiClient
from ecotravel.llm.retry import RetryPolicy
from ecotravel.llm.trip_extractor import TripExtractor
from ecotravel.models.message import Message
from ecotravel.models.settings import UserSettings
from ecotravel.models.state import ConversationState, WidgetKind
from ecotravel.models.tool_call import OutcomeKind, ToolResult
from ecotravel.models.trip import Trip, TripProposal
from ecotravel.models.widgets import parse_widget_form
from ecotravel.tools.dispatcher import ToolDispatcher
from ecotravel.tools.registry import DISPLAY_RECOMMENDATIONS

APOLOGY_MESSAGE = "Ein Fehler ist aufgetreten. Bitte versuche es erneut."
RATE_LIMIT_MESSAGE = (
    "Ich brauche eine kurze Pause, gerade sind zu viele Anfragen unterwegs. "
    "Bitte versuche es in einem Moment noch einmal."
)
LOOP_LIMIT_MESSAGE = (
    "Ich habe mich in zu vielen Zwischenschritten verheddert. "
    "Magst du deine Anfrage noch einmal anders formulieren?"
)

# Tool results that are fed back silently (no user confirmation bubble).
_SILENT_TOOLS = {DISPLAY_RECOMMENDATIONS}


class ConversationController:
    GREETING_TRIGGER = "Hallo! Ich möchte eine neue Reise planen."
    EXTRACTION_MIN_CHARS = 500
    MAX_CHAINED_TOOL_CALLS = 10

    def __init__(
        self,
        settings: Optional[UserSettings] = None,
        trips: Optional[Sequence[Trip]] = None,
        transport: Optional[ChatTransport] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        extractor: Optional[TripExtractor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking; defaults share one GeminiClient.
        self.settings = settings or UserSettings()
        self.trips = list(trips or [])

        if transport is None:
            client = GeminiClient()
            transport = ChatTransport(client)
            extractor = extractor or TripExtractor(client)

        self.transport = transport
        self.dispatcher = dispatcher or ToolDispatcher(self.settings)
        self.extractor = extractor or TripExtractor()
        self.retry_policy = retry_policy or RetryPolicy()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="trip-extractor")

        self.state = ConversationState()
        self.events = EventEmitter()
        self._session: Optional[ChatSession] = None
        # Set while the model has a function call in the history that was never answered.
        self._unanswered_call = False
        self._lock = threading.Lock()

    # ----------------------------
    # Public operations
    # ----------------------------
    @property
    def started(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: Listener):
        return self.events.subscribe(listener)

    def start(self) -> bool:
        # 1) Create the chat session (once)
        # 2) Send the hidden greeting trigger; only the assistant's opening turn becomes visible
        if self._session is not None or not self._claim_turn():
            return False
        self._run_turn(self.GREETING_TRIGGER, create_session=True)
        return True

    def send_user_message(self, text: str) -> bool:
        text = (text or "").strip()
        if not text or self._session is None:
            return False
        if not self._claim_turn():
            return False

        self._begin_user_turn(text)
        self._run_turn(text)
        return True

    def submit_widget(self, widget: Union[WidgetKind, str], values: Optional[Dict[str, Any]] = None) -> bool:
        # 1) Reject unless this widget is the one waiting
        # 2) Validate the form (invalid input keeps the widget open)
        # 3) Close widget + clear pending call before anything goes over the network
        # 4) Confirmation bubble, then feed the tool result into the loop
        try:
            widget = WidgetKind(widget)
        except ValueError:
            return False
        if widget == WidgetKind.NONE or self.state.active_widget != widget:
            return False

        try:
            form = parse_widget_form(widget, values or {})
        except ValidationError as e:
            fields = ", ".join(sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")}))
            self._emit_status(f"Bitte prüfe deine Eingaben ({fields}).")
            return False

        with self._lock:
            if self.state.is_busy or self.state.active_widget != widget or self.state.pending_tool_call is None:
                return False
            pending = self.state.close_widget()
            self.state.is_busy = True

        self.events.emit(EventKind.WIDGET_CLOSED, widget=widget)
        self.events.emit(EventKind.BUSY_CHANGED, busy=True)

        if pending.name not in _SILENT_TOOLS:
            self._add_message(Message(role="user", text=form.confirmation_text(), is_system_action=True))

        self._run_turn(ToolResult(name=pending.name, result=form.to_tool_result(), call_id=pending.call_id))
        return True

    def select_recommendation(self, message_id: str, index: int) -> bool:
        message = self.state.find_message(message_id)
        if message is None or not message.recommendations:
            return False
        if not 0 <= index < len(message.recommendations):
            return False
        if self._session is None or not self._claim_turn():
            return False

        rec = message.recommendations[index]
        text = f"Ich wähle die Option: {rec.title}"
        self._begin_user_turn(text)

        # Key line: set after the turn reset, so the selection survives until extraction overwrites it.
        self.state.proposed_trip = TripProposal.from_recommendation(rec)
        self.events.emit(EventKind.TRIP_PROPOSED, trip=self.state.proposed_trip)

        self._run_turn(text)
        return True

    def accept_proposed_trip(self) -> Optional[Trip]:
        with self._lock:
            proposal = self.state.proposed_trip
            if self.state.is_busy or proposal is None:
                return None
            self.state.proposed_trip = None

        trip = Trip.from_proposal(proposal)
        self.trips.append(trip)
        self._add_message(
            Message(role="model", text=f"✅ Die Reise nach **{trip.destination}** wurde erfolgreich geplant!")
        )
        # Persistence stays with the caller (listener or API layer).
        self.events.emit(EventKind.TRIP_CREATED, trip=trip)
        return trip

    def transcript(self) -> str:
        return "\n".join(f"{m.role}: {m.text}" for m in self.state.messages if m.text)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    # ----------------------------
    # Turn lifecycle
    # ----------------------------
    def _claim_turn(self) -> bool:
        # Key line: busy flag is the turn mutex; check-and-set happens atomically.
        with self._lock:
            if self.state.is_busy or self.state.widget_open:
                return False
            self.state.is_busy = True
        self.events.emit(EventKind.BUSY_CHANGED, busy=True)
        return True

    def _release_turn(self) -> None:
        with self._lock:
            self.state.is_busy = False
        self.events.emit(EventKind.BUSY_CHANGED, busy=False)

    def _begin_user_turn(self, text: str) -> None:
        self._add_message(Message(role="user", text=text))
        self.state.proposed_trip = None
        self.state.grounding_sources = []
        self.events.emit(EventKind.SOURCES_UPDATED, sources=[])

    def _run_turn(self, message: ChatInput, create_session: bool = False) -> None:
        # Expects the turn to be claimed already; always releases it.
        try:
            if create_session or self._unanswered_call:
                self._reset_session(create_session)
            self._continue(message)
        except RateLimited as e:
            if config.DEBUG:
                print("\n!!! RATE LIMIT EXHAUSTED !!!")
                print(repr(e))
            self._add_message(Message(role="model", text=RATE_LIMIT_MESSAGE))
        except Exception as e:
            if config.DEBUG:
                print("\n!!! TURN ERROR !!!")
                print(repr(e))
                print("!!! END ERROR !!!\n")
            self._add_message(Message(role="model", text=APOLOGY_MESSAGE))
        finally:
            self._drop_empty_model_messages()
            self._release_turn()

    def _reset_session(self, first: bool) -> None:
        # The backend rejects a history that ends in an unanswered function call.
        if config.DEBUG and not first:
            print("\n--- SESSION RESET (unanswered tool call) ---\n")
        self._session = self.transport.create(self.settings, self.trips)
        self._unanswered_call = False

    def _continue(self, message: ChatInput) -> None:
        # 1) Send (RetryPolicy handles rate limits) and stream fragments into a model message
        # 2) No tool call -> turn complete
        # 3) Tool call -> keep text (if any), dispatch the first call
        #    - suspend -> stop, wait for submit_widget
        #    - immediate / fetched -> send the tool result and go to 1
        chained = 0
        while True:
            handle = self.retry_policy.call(self._session.send, message, on_wait=self._emit_status)
            self._unanswered_call = False
            reply = self._stream_reply(handle)
            result = handle.result()

            if config.DEBUG:
                print("\n--- TURN RESULT ---")
                print("TEXT:", result.text[:300])
                print("TOOL CALLS:", [c.name for c in result.tool_calls])
                print("SOURCES:", len(result.sources))
                print("-------------------\n")

            if not result.tool_calls:
                self._finish_turn(result)
                return

            if reply is not None and not reply.text.strip():
                self._remove_message(reply)

            self._unanswered_call = True
            chained += 1
            if chained > self.MAX_CHAINED_TOOL_CALLS:
                self._add_message(Message(role="model", text=LOOP_LIMIT_MESSAGE))
                return

            # Key line: only the first tool call of a turn is acted on.
            call = result.tool_calls[0]
            outcome = self.dispatcher.dispatch(call, self.state)
            for appended in outcome.appended:
                self.events.emit(EventKind.MESSAGE_ADDED, message=appended)

            if outcome.kind == OutcomeKind.SUSPEND:
                self._unanswered_call = False
                self.events.emit(EventKind.WIDGET_OPENED, widget=outcome.widget, tool_name=call.name)
                return

            message = ToolResult(name=call.name, result=outcome.result, call_id=call.call_id)

    def _stream_reply(self, handle: StreamHandle) -> Optional[Message]:
        reply: Optional[Message] = None
        for fragment in handle:
            if reply is None:
                reply = Message(role="model")
                self._add_message(reply)
            reply.append_text(fragment)
            self.events.emit(EventKind.MESSAGE_UPDATED, message_id=reply.id, fragment=fragment, text=reply.text)
        return reply

    def _finish_turn(self, result: TurnResult) -> None:
        # Grounding sources are replaced, not merged.
        self.state.grounding_sources = list(result.sources)
        self.events.emit(EventKind.SOURCES_UPDATED, sources=self.state.grounding_sources)
        self._drop_empty_model_messages()
        self._schedule_extraction()

    # ----------------------------
    # Trip extraction (fire-and-forget)
    # ----------------------------
    def _schedule_extraction(self) -> None:
        if self.state.widget_open:
            return
        transcript = self.transcript()
        if len(transcript) <= self.EXTRACTION_MIN_CHARS:
            return
        future = self._executor.submit(self.extractor.extract, transcript)
        future.add_done_callback(self._apply_extraction)

    def _apply_extraction(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            if config.DEBUG:
                print("TRIP EXTRACTION ERROR:", repr(error))
            return

        proposal = future.result()
        if proposal is None or not proposal.destination:
            return

        # Key line: last write wins; results from an older transcript are still applied.
        self.state.proposed_trip = proposal
        self.events.emit(EventKind.TRIP_PROPOSED, trip=proposal)

    # ----------------------------
    # Message helpers
    # ----------------------------
    def _add_message(self, message: Message) -> None:
        self.state.messages.append(message)
        self.events.emit(EventKind.MESSAGE_ADDED, message=message)

    def _remove_message(self, message: Message) -> None:
        self.state.messages = [m for m in self.state.messages if m.id != message.id]
        self.events.emit(EventKind.MESSAGE_REMOVED, message_id=message.id)

    def _drop_empty_model_messages(self) -> None:
        for message in [m for m in self.state.messages if m.role == "model" and not m.text.strip()]:
            self._remove_message(message)

    def _emit_status(self, text: str) -> None:
        self.events.emit(EventKind.STATUS, text=text)
