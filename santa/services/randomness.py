"""Process-wide randomness shared by alias binding and the search workers.

The generator is seeded once from the wall clock when the module is first
imported. Workers draw their own :class:`random.Random` from it with
:func:`spawn_rng` so that concurrent attempts never share a stream.
"""
from __future__ import annotations

import random
import time
from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

_rng = random.Random(time.time_ns())


def seed(value: Optional[int] = None) -> None:
    _rng.seed(time.time_ns() if value is None else value)


def spawn_rng() -> random.Random:
    return random.Random(_rng.getrandbits(64))


def random_element(items: Sequence[T], rng: Optional[random.Random] = None) -> Tuple[T, int]:
    """Pick a uniformly random element, returning it together with its index."""
    if not items:
        raise IndexError("Cannot pick from an empty sequence.")
    index = (rng or _rng).randrange(len(items))
    return items[index], index


def remove_index(items: Sequence[T], index: int) -> List[T]:
    return list(items[:index]) + list(items[index + 1 :])
