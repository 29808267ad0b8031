from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import List, Optional, Sequence, Set

from loguru import logger

from santa.core.config import DEFAULT_MAX_PICKS, DEFAULT_WORKER_COUNT
from santa.core.errors import AllocationTimeout
from santa.services.assignment import attempt_assignment
from santa.services.players import Player
from santa.services.rules import RuleSet


async def search(
    rules: RuleSet,
    names: Sequence[str],
    passwords: Sequence[str],
    timeout: timedelta,
    worker_count: int = DEFAULT_WORKER_COUNT,
    max_picks: Optional[int] = DEFAULT_MAX_PICKS,
) -> List[Player]:
    """Race ``worker_count`` attempts against ``timeout``.

    The first completed graph wins. A fatal rule error from any worker is
    re-raised. Workers that give up are replaced while time remains.
    """
    if worker_count < 1:
        raise ValueError("worker_count must be at least 1")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout.total_seconds()
    spawned = 0

    def spawn() -> asyncio.Task:
        nonlocal spawned
        spawned += 1
        return asyncio.create_task(
            attempt_assignment(rules, names, passwords, max_picks=max_picks, worker_id=spawned)
        )

    pending: Set[asyncio.Task] = {spawn() for _ in range(worker_count)}
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            fatal: Optional[BaseException] = None
            for task in done:
                error = task.exception()
                if error is not None:
                    fatal = fatal or error
                    continue
                result = task.result()
                if result is not None:
                    logger.bind(workers=spawned).info("Allocation found")
                    return result
                pending.add(spawn())
            if fatal is not None:
                logger.bind(workers=spawned, error=str(fatal)).warning("Allocation aborted")
                raise fatal
    finally:
        await _cancel_all(pending)

    logger.bind(workers=spawned, timeout=timeout.total_seconds()).warning("Allocation timed out")
    raise AllocationTimeout(timeout)


async def _cancel_all(tasks: Set[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
