from __future__ import annotations

import inspect
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar, cast

from .errors import InvalidResponse, NetworkError, StorageError
from .utils import get_retries

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None] | None]

TRANSIENT_STATUS_CODES = frozenset({408, 429})


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (NetworkError, InvalidResponse)):
        return True
    if isinstance(exc, StorageError) and exc.status_code is not None:
        return exc.status_code in TRANSIENT_STATUS_CODES or exc.status_code >= 500
    return False


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with exponential backoff and jitter around one round-trip."""

    attempts: int = 3
    base_delay: float = 0.5
    max_jitter: float = 0.2

    @classmethod
    def from_env(cls) -> RetryPolicy:
        return cls(attempts=get_retries())

    def delay_for(self, attempt: int) -> float:
        """Delay to sleep after failed ``attempt`` (1-based)."""
        return self.base_delay * 2 ** (attempt - 1) + random.uniform(0, self.max_jitter)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        sleep_fn: SleepFn,
        describe: str = "request",
        retry_on: Callable[[BaseException], bool] = is_transient,
    ) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except StorageError as exc:
                if attempt >= self.attempts or not retry_on(exc):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    describe,
                    attempt,
                    self.attempts,
                    exc,
                    delay,
                )
                result = sleep_fn(delay)
                if inspect.isawaitable(result):
                    await cast(Awaitable[None], result)
                attempt += 1


__all__ = ["RetryPolicy", "SleepFn", "is_transient", "TRANSIENT_STATUS_CODES"]
