"""Bounded polling for eventually consistent provider state."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from .errors import ConditionTimeout

logger = logging.getLogger(__name__)

Predicate = Callable[[], Awaitable[bool]]


async def await_condition(
    predicate: Predicate,
    interval: float,
    timeout: float | None,
    description: str,
) -> None:
    """Poll ``predicate`` every ``interval`` seconds until it returns True.

    Args:
        predicate: Async callable re-querying the provider on every call.
        interval: Seconds to sleep between polls.
        timeout: Ceiling in seconds, or None to wait indefinitely.
        description: What is being waited for, used in logs and the timeout error.

    Raises:
        ConditionTimeout: The ceiling elapsed before the predicate held.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        if await predicate():
            return
        if deadline is not None and time.monotonic() >= deadline:
            raise ConditionTimeout(description, timeout)
        logger.debug("Waiting for %s", description)
        await asyncio.sleep(interval)
