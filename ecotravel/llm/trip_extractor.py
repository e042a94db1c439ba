# Role: Advisory trip extraction. One structured-output call turns the visible transcript into a TripProposal;
# the NULL sentinel, unparseable output and model failures all mean "no trip yet" (None), never an exception.

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

import ecotravel.config as config
from ecotravel.errors import ExtractionFailure
from ecotravel.llm.gemini_client import GeminiClient
from ecotravel.models.trip import TripProposal
from ecotravel.prompts.extraction_prompt import NULL_SENTINEL, TRIP_SCHEMA, build_extraction_prompt


class TripExtractor:
    """
    Structured trip extraction from a chat transcript.

    Contract:
    - The model is asked for a single Trip-shaped JSON object or NULL.
    - Output is parsed leniently (code fences, surrounding prose).
    - Any failure is reported as None; callers treat the result as advisory.
    """

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client

    def _get_client(self) -> GeminiClient:
        # Key line: lazy-init so a controller with injected fakes never needs GEMINI_API_KEY.
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    def extract(self, conversation_text: str) -> Optional[TripProposal]:
        if not conversation_text or not conversation_text.strip():
            return None

        prompt = build_extraction_prompt(conversation_text)
        try:
            raw = self._get_client().generate_json(prompt, TRIP_SCHEMA)
            proposal = self.parse(raw)
        except (RuntimeError, ExtractionFailure) as e:
            if config.DEBUG:
                print("\n--- TRIP EXTRACTION FAILED ---")
                print(repr(e))
                print("------------------------------\n")
            return None

        if config.DEBUG:
            print("\n--- TRIP EXTRACTION ---")
            print("PROPOSAL:", proposal.model_dump() if proposal else None)
            print("-----------------------\n")

        return proposal

    def parse(self, raw: str) -> Optional[TripProposal]:
        # 1) NULL sentinel -> no trip
        # 2) Lenient JSON parse
        # 3) Validate against TripProposal; a proposal without destination is no proposal
        text = (raw or "").strip()
        if not text or NULL_SENTINEL in text:
            return None

        parsed = _try_parse_json(text)
        if not isinstance(parsed, dict):
            raise ExtractionFailure(f"Extraction output is not a JSON object: {text[:200]!r}")

        try:
            proposal = TripProposal.model_validate(parsed)
        except ValidationError as e:
            raise ExtractionFailure(f"Extraction output does not match the trip schema: {e}") from e

        if not proposal.destination or not proposal.destination.strip():
            return None
        return proposal


def _strip_code_fences(text: str) -> str:
    t = text.strip()
    if t.startswith("```"):
        t = re.sub(r"^\s*```(?:json)?\s*", "", t, flags=re.IGNORECASE)
        t = re.sub(r"\s*```\s*$", "", t)
    return t.strip()


def _try_parse_json(text: str) -> Optional[Dict[str, Any]]:
    # 1) strict json.loads
    # 2) strip code fences
    # 3) extract {...} substring as last attempt
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    cleaned = _strip_code_fences(text)
    if cleaned != text:
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            return None
    return None
