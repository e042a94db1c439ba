# Role: Stateful chat session with the model. Each send carries only the delta (user text or one tool result);
# the reply comes back as a lazy stream of text fragments followed by exactly one TurnResult
# (full text, tool calls, grounding sources). Provider errors are mapped to RateLimited / TransportError.

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from google.genai import errors, types

import ecotravel.config as config
from ecotravel.errors import RateLimited, TransportError
from ecotravel.llm.gemini_client import GeminiClient
from ecotravel.models.settings import UserSettings
from ecotravel.models.state import GroundingSource
from ecotravel.models.tool_call import ToolCall, ToolResult
from ecotravel.models.trip import Trip
from ecotravel.prompts.system_prompt import build_system_prompt
from ecotravel.tools.registry import TOOL_REGISTRY, ToolSpec

ChatInput = Union[str, ToolResult]


@dataclass(frozen=True)
class StreamChunk:
    text: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()
    sources: Tuple[GroundingSource, ...] = ()


@dataclass(frozen=True)
class TurnResult:
    text: str
    tool_calls: Tuple[ToolCall, ...] = ()
    sources: Tuple[GroundingSource, ...] = ()


class StreamHandle:
    """
    Lazy, finite, non-restartable view of one model reply.

    Iterating yields text fragments (their concatenation is the text so far).
    result() drains whatever is left and returns the terminal TurnResult.
    """

    def __init__(self, chunks: Iterable[StreamChunk]) -> None:
        self._chunks = iter(chunks)
        self._fragments = self._consume()
        self._text_parts: List[str] = []
        self._tool_calls: List[ToolCall] = []
        self._sources: Tuple[GroundingSource, ...] = ()
        self._result: Optional[TurnResult] = None

    def __iter__(self) -> Iterator[str]:
        return self._fragments

    def _consume(self) -> Iterator[str]:
        for chunk in self._chunks:
            self._tool_calls.extend(chunk.tool_calls)
            # Key line: grounding metadata usually arrives on the last chunk; keep the latest non-empty set.
            if chunk.sources:
                self._sources = chunk.sources
            if chunk.text:
                self._text_parts.append(chunk.text)
                yield chunk.text
        self._result = TurnResult(
            text="".join(self._text_parts),
            tool_calls=tuple(self._tool_calls),
            sources=self._sources,
        )

    def result(self) -> TurnResult:
        for _ in self._fragments:
            pass
        if self._result is None:
            raise TransportError("Stream ended without a result")
        return self._result


class ChatSession:
    def __init__(self, chat: Any) -> None:
        self._chat = chat

    def send(self, message: ChatInput) -> StreamHandle:
        # 1) Convert the delta into the provider payload
        # 2) Start the stream and pull the first chunk eagerly (rate limits surface here, before any history)
        # 3) Hand the rest over as a lazy StreamHandle
        payload = _to_payload(message)

        if config.DEBUG:
            print("\n--- CHAT SEND ---")
            print("PAYLOAD:", message)
            print("-----------------\n")

        try:
            stream = iter(self._chat.send_message_stream(payload))
            first = next(stream, None)
        except errors.APIError as e:
            raise map_api_error(e) from e
        except Exception as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        head = [first] if first is not None else []
        return StreamHandle(_convert(itertools.chain(head, stream)))


class ChatTransport:
    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        registry: Sequence[ToolSpec] = TOOL_REGISTRY,
        google_search: Optional[bool] = None,
    ) -> None:
        self.client = client or GeminiClient()
        self.registry = registry
        self.google_search = config.GOOGLE_SEARCH_ENABLED if google_search is None else google_search

    def create(self, settings: UserSettings, trips: Sequence[Trip]) -> ChatSession:
        system_instruction = build_system_prompt(settings, trips)
        declarations = [types.FunctionDeclaration(**spec.to_declaration()) for spec in self.registry]
        tools = [types.Tool(function_declarations=declarations)]
        if self.google_search:
            tools.insert(0, types.Tool(google_search=types.GoogleSearch()))
        return ChatSession(self.client.create_chat(system_instruction, tools))


def _to_payload(message: ChatInput) -> Any:
    if isinstance(message, ToolResult):
        return [types.Part.from_function_response(name=message.name, response={"result": message.result})]
    return message


def _convert(responses: Iterable[Any]) -> Iterator[StreamChunk]:
    # Key line: errors can also happen mid-stream; they end the turn as transport errors.
    try:
        for response in responses:
            yield chunk_from_response(response)
    except errors.APIError as e:
        raise map_api_error(e) from e
    except (RateLimited, TransportError):
        raise
    except Exception as e:
        raise TransportError(f"Gemini stream failed: {e}") from e


def chunk_from_response(response: Any) -> StreamChunk:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return StreamChunk()

    candidate = candidates[0]
    content = getattr(candidate, "content", None)
    parts = (getattr(content, "parts", None) or []) if content is not None else []

    texts: List[str] = []
    calls: List[ToolCall] = []
    for part in parts:
        if getattr(part, "thought", False):
            continue
        if getattr(part, "text", None):
            texts.append(part.text)
        fc = getattr(part, "function_call", None)
        if fc is not None and getattr(fc, "name", None):
            calls.append(ToolCall(name=fc.name, args=dict(fc.args or {}), call_id=fc.id or "unknown"))

    return StreamChunk(
        text="".join(texts),
        tool_calls=tuple(calls),
        sources=_grounding_sources(getattr(candidate, "grounding_metadata", None)),
    )


def _grounding_sources(metadata: Any) -> Tuple[GroundingSource, ...]:
    if metadata is None:
        return ()
    sources: List[GroundingSource] = []
    seen = set()
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if uri and title and uri not in seen:
            seen.add(uri)
            sources.append(GroundingSource(title=title, uri=uri))
    return tuple(sources)


def map_api_error(e: errors.APIError) -> Exception:
    status = str(getattr(e, "status", "") or "").upper()
    if getattr(e, "code", None) == 429 or status == "RESOURCE_EXHAUSTED":
        return RateLimited(str(e))
    return TransportError(f"Gemini API error: {e}")
