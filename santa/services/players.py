from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from santa.core.errors import SetupInvalid
from santa.services.randomness import random_element, remove_index


@dataclass(eq=False)
class Player:
    name: str
    alias: Optional[str] = None
    gives_to: Optional["Player"] = field(default=None, repr=False)
    receives_from: Optional["Player"] = field(default=None, repr=False)

    def __repr__(self) -> str:
        gives_to = self.gives_to.name if self.gives_to else None
        return f"<Player(name={self.name}, alias={self.alias}, gives_to={gives_to})>"


def build(names: Iterable[str]) -> List[Player]:
    return [Player(name=name) for name in names]


def assign_aliases(
    players: Sequence[Player],
    pool: Sequence[str],
    rng: Optional[random.Random] = None,
) -> None:
    if len(pool) < len(players):
        raise SetupInvalid("There must be the same or more passwords than names.")

    remaining = list(pool)
    for player in players:
        alias, index = random_element(remaining, rng)
        player.alias = alias
        remaining = remove_index(remaining, index)


def link(giver: Player, recipient: Player) -> None:
    if giver.gives_to is not None or recipient.receives_from is not None:
        raise ValueError(f"Cannot link {giver.name} to {recipient.name}: an edge already exists.")
    giver.gives_to = recipient
    recipient.receives_from = giver


def find(players: Sequence[Player], name: str) -> Optional[Player]:
    for player in players:
        if player.name == name:
            return player
    return None
