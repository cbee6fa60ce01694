"""Retry policy shared by every outbound catalog call."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class RetryPolicy:
    """Retry ``retry_on`` failures with a linear ``delay * attempt`` backoff."""

    attempts: int = 3
    delay_seconds: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``fn`` and re-raise the last error once attempts run out."""
        for attempt in range(1, self.attempts + 1):
            try:
                return fn(*args, **kwargs)
            except self.retry_on as exc:
                if attempt == self.attempts:
                    raise
                delay = self.delay_seconds * attempt
                LOGGER.warning(
                    "Attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt,
                    self.attempts,
                    exc,
                    delay,
                )
                self.sleep(delay)
        raise AssertionError("unreachable")


__all__ = ["RetryPolicy"]
