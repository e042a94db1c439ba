# Role: Failure taxonomy for the chat loop. RateLimited is the only retryable error; tool-level failures are
# converted into "ERROR:" tool results by the dispatcher so the model can recover conversationally.

from __future__ import annotations

from typing import Optional


class TravelAssistantError(Exception):
    pass


class RateLimited(TravelAssistantError):
    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransportError(TravelAssistantError):
    pass


class ToolPreconditionError(TravelAssistantError):
    """
    A tool call that cannot run as requested (missing key, invalid dates).

    `detail` goes back to the model; `user_message`, when set, is also shown in the chat.
    """

    def __init__(self, detail: str, user_message: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.user_message = user_message


class ExternalApiError(TravelAssistantError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionFailure(TravelAssistantError):
    pass
