import time
from typing import Callable

from courtsync.services.error_classifier import ErrorKind

RETRYABLE_KINDS = frozenset({ErrorKind.WRONG_ANSWER, ErrorKind.ORACLE_FAILURE})


class RetryPolicy:
    """Attempt budget, fixed inter-attempt delay and which failures are retried.

    `sleep` is injectable so tests can run the retry loop without real timers.
    """

    def __init__(self, max_attempts: int = 3, delay_seconds: float = 2.0, sleep: Callable[[float], None] = time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def should_retry(self, kind: ErrorKind, attempt: int) -> bool:
        return kind in RETRYABLE_KINDS and attempt < self.max_attempts

    def wait(self) -> None:
        if self.delay_seconds:
            self._sleep(self.delay_seconds)
