from __future__ import annotations

import asyncio
import random
from typing import List, Optional, Sequence

from loguru import logger

from santa.core.config import DEFAULT_MAX_PICKS
from santa.core.errors import RuleInvalid
from santa.services import players as graph
from santa.services.players import Player
from santa.services.randomness import random_element, remove_index, spawn_rng
from santa.services.rules import RuleSet


async def attempt_assignment(
    rules: RuleSet,
    names: Sequence[str],
    passwords: Sequence[str],
    max_picks: Optional[int] = DEFAULT_MAX_PICKS,
    rng: Optional[random.Random] = None,
    worker_id: int = 0,
) -> Optional[List[Player]]:
    """Make one randomised attempt at completing the player graph.

    Returns the completed players, or ``None`` if the attempt ran out of
    picks. Raises :class:`RuleInvalid` when the forced rules collide.
    Cancellation is observed at the head of every pick.
    """
    rng = rng or spawn_rng()
    log = logger.bind(worker_id=worker_id)

    players = graph.build(names)
    graph.assign_aliases(players, passwords, rng)
    remaining_santas = list(players)

    for santa_name, santee_name in rules.force.items():
        santa = graph.find(players, santa_name)
        santee = graph.find(players, santee_name)
        if santa is None or santee is None:
            missing = santa_name if santa is None else santee_name
            raise RuleInvalid(
                f"Cannot allocate [{santee_name}] to [{santa_name}] as [{missing}] is not in the list of names."
            )
        if santa.gives_to is not None or santee.receives_from is not None:
            raise RuleInvalid(
                f"Cannot allocate [{santee_name}] to [{santa_name}] as they are already allocated."
            )
        graph.link(santa, santee)
        remaining_santas.remove(santa)

    picks = 0
    for santee in players:
        while santee.receives_from is None:
            await asyncio.sleep(0)
            if max_picks is not None and picks >= max_picks:
                log.debug("Worker gave up after {picks} picks", picks=picks)
                return None
            picks += 1
            santa, index = random_element(remaining_santas, rng)
            if rules.is_valid(santa.name, santee.name):
                graph.link(santa, santee)
                remaining_santas = remove_index(remaining_santas, index)

    log.debug("Worker completed after {picks} picks", picks=picks)
    return players
