"""Caller-side retry policy for network stages.

Nothing retries implicitly. A ``RetryPolicy`` with ``retries=0`` (the
default) performs exactly one attempt; callers opt in to retries for
``TransportError`` only. Authentication and publish rejections are never
retried, nor are transport errors flagged as not retryable.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable, TypeVar

from ..logging_utils import log_event
from .errors import TransportError


T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retry transient transport failures with linear backoff.

    Attributes:
        retries: Number of retry attempts after the initial failure
        backoff_seconds: Base delay; attempt N waits ``backoff_seconds * N``
    """
    retries: int = 0
    backoff_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep

    def call(self, fn: Callable[[], T], logger: logging.Logger | None = None) -> T:
        attempt = 0
        while True:
            try:
                return fn()
            except TransportError as exc:
                if attempt >= self.retries or not exc.retryable:
                    raise
                attempt += 1
                delay = self.backoff_seconds * attempt
                log_event(
                    logger,
                    "Retrying after transport error",
                    event="retry",
                    attempt=attempt,
                    delay=delay,
                    error=str(exc),
                )
                self.sleep(delay)
