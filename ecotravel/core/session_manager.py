# Role: In-memory session registry. Owns lifecycle of ConversationController objects:
# create/get by session_id, track last activity, and cleanup expired sessions.

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from ecotravel.core.controller import ConversationController

ControllerFactory = Callable[[], ConversationController]


class SessionManager:
    def __init__(self, session_ttl_minutes: int = 60) -> None:
        self._controllers: Dict[str, ConversationController] = {}
        self._last_seen: Dict[str, datetime] = {}
        self._ttl = timedelta(minutes=session_ttl_minutes)
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[ConversationController]:
        with self._lock:
            controller = self._controllers.get(session_id)
            if controller is not None:
                self._last_seen[session_id] = datetime.now(timezone.utc)
            return controller

    def get_or_create(self, session_id: str, factory: ControllerFactory) -> ConversationController:
        # Reuse existing controller or initialize a fresh one.
        with self._lock:
            controller = self._controllers.get(session_id)
            if controller is None:
                controller = factory()
                self._controllers[session_id] = controller
            self._last_seen[session_id] = datetime.now(timezone.utc)
            return controller

    def drop(self, session_id: str) -> bool:
        with self._lock:
            controller = self._controllers.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if controller is None:
            return False
        controller.close()
        return True

    def cleanup_expired(self) -> int:
        # Role: drop inactive sessions to avoid unbounded growth (best for long-running servers).
        now = datetime.now(timezone.utc)
        with self._lock:
            to_delete = [sid for sid, seen in self._last_seen.items() if (now - seen) > self._ttl]
        for sid in to_delete:
            self.drop(sid)
        return len(to_delete)

    def __len__(self) -> int:
        return len(self._controllers)
