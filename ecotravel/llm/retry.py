# Role: Bounded retry for chat sends. Only RateLimited is retried (linear backoff: 2s, 4s, 6s);
# everything else propagates immediately. The caller gets a human-readable status before each wait.

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

import ecotravel.config as config
from ecotravel.errors import RateLimited

T = TypeVar("T")


class RetryPolicy:
    def __init__(
        self,
        max_retries: int = 3,
        backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        # attempt is 1-based; delays strictly increase.
        return self.backoff_seconds * attempt

    def call(
        self,
        fn: Callable[..., T],
        *args,
        on_wait: Optional[Callable[[str], None]] = None,
        **kwargs,
    ) -> T:
        attempt = 0
        while True:
            try:
                return fn(*args, **kwargs)
            except RateLimited as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                delay = self.delay_for(attempt)

                if config.DEBUG:
                    print(f"RATE LIMITED ({e}); retry {attempt}/{self.max_retries} in {delay:g}s")

                if on_wait is not None:
                    on_wait(
                        f"Gerade sind viele Anfragen unterwegs. Ich versuche es in {delay:g} Sekunden erneut "
                        f"({attempt}/{self.max_retries})..."
                    )
                self._sleep(delay)
