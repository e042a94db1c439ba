# Role: Minimal wrapper around the Gemini API. Centralizes credentials, model name and temperature, so the rest of
# the code only asks for a chat session (create_chat) or a schema-constrained JSON answer (generate_json).

import os
from typing import Any, List, Optional

from google import genai
from google.genai import chats, types

from ecotravel.config import DEFAULT_MODEL


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
    ) -> None:
        # Key lines:
        # - Reads secrets from env when not passed explicitly (no secrets in code).
        # - One client per owner; nothing is shared at module level.
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            raise RuntimeError("Missing GEMINI_API_KEY in environment or .env")

        self.model_name = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.temperature = temperature

        self.client = genai.Client(api_key=self.api_key)

    def create_chat(self, system_instruction: str, tools: List[types.Tool]) -> chats.Chat:
        # No network call here; the session keeps its own history across send_message_stream calls.
        return self.client.chats.create(
            model=self.model_name,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                tools=tools,
                temperature=self.temperature,
            ),
        )

    def generate_json(self, prompt: str, schema: Any) -> str:
        # 1) Validate prompt
        # 2) Call Gemini with a JSON response schema
        # 3) Validate non-empty response
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must be non-empty.")

        try:
            resp = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=0.0,
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as e:
            raise RuntimeError(f"Gemini API call failed: {e}") from e

        text = getattr(resp, "text", None)
        if not text:
            raise RuntimeError("Gemini returned an empty response.")

        return text.strip()
