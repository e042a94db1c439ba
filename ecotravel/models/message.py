# Role: Single chat message schema for the conversation. Stored in ConversationState and rendered by the UI
# (role + text + timestamp, plus optional recommendation cards).

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ecotravel.models.recommendation import Recommendation

Role = Literal["user", "model"]


class Message(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role
    text: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    recommendations: Optional[List[Recommendation]] = None

    # Key line: marks synthetic messages (widget confirmations), not typed by the user.
    is_system_action: bool = False

    def append_text(self, fragment: str) -> None:
        # Only used on the model message that is currently streaming.
        self.text += fragment
