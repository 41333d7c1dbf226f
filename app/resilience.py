"""
app/resilience.py

Bounded-retry wrapper for store reads that should degrade instead of fail.

Each attempt runs under ``asyncio.wait_for``, so a timed-out attempt is
cancelled rather than left running in the background. Between failed
attempts the wrapper backs off exponentially (1s, 2s, 4s, ...). When every
attempt fails the caller receives its fallback value; the wrapper itself
never raises.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """
    Outcome of one data-fetch attempt; ``error`` is ``None`` on success.
    """

    data: T | None = None
    error: Any = None


def backoff_seconds(attempt: int) -> float:
    """Delay inserted after failed attempt ``attempt`` (1-indexed)."""
    return float(2 ** (attempt - 1))


async def safe_query(
    operation: Callable[[], Awaitable[QueryResult[T]]],
    default: T,
    context: str,
    *,
    attempts: int = 2,
    timeout_ms: int = 12000,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run ``operation`` with bounded attempts and return its data or ``default``.

    Args:
        operation: Zero-argument callable returning an awaitable
            ``QueryResult``. Raising is treated like returning an error.
        default: Value returned when every attempt fails, and when a
            successful attempt carries ``data=None``.
        context: Human-readable label used in log lines.
        attempts: Total attempts, including the first.
        timeout_ms: Per-attempt timeout in milliseconds.
        sleep: Awaitable sleep used for backoff; injectable for tests.

    Returns:
        The fetched data, or ``default``.
    """
    total_attempts = max(1, attempts)
    timeout_seconds = max(1, timeout_ms) / 1000

    for attempt in range(1, total_attempts + 1):
        try:
            result = await asyncio.wait_for(operation(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Store read timed out context=%r attempt=%d/%d limit_ms=%d",
                context,
                attempt,
                total_attempts,
                timeout_ms,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Store read failed context=%r attempt=%d/%d error=%s",
                context,
                attempt,
                total_attempts,
                exc,
            )
        else:
            if result.error is None:
                if attempt > 1:
                    logger.info(
                        "Store read recovered context=%r attempt=%d/%d",
                        context,
                        attempt,
                        total_attempts,
                    )
                return default if result.data is None else result.data

            logger.warning(
                "Store read returned error context=%r attempt=%d/%d error=%s",
                context,
                attempt,
                total_attempts,
                result.error,
            )

        if attempt < total_attempts:
            await sleep(backoff_seconds(attempt))

    logger.error(
        "Store read exhausted attempts context=%r attempts=%d; returning fallback value",
        context,
        total_attempts,
    )
    return default
