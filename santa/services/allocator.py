from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import List, Optional, Sequence

from loguru import logger

from santa.core.config import DEFAULT_MAX_PICKS, DEFAULT_WORKER_COUNT
from santa.core.errors import ConfigInvalid, SetupInvalid
from santa.services.allocation import Allocation, ArchiveEnvelope
from santa.services.config_file import (
    DEFAULT_TIMEOUT,
    AllocationConfig,
    Rule,
    normalise_names,
    normalise_passwords,
    resolve_names,
    resolve_passwords,
)
from santa.services.rules import RuleSet
from santa.services.search import search


class Allocator:
    """Maps names to aliases and each name to another participant's alias."""

    def __init__(
        self,
        names: Sequence[str],
        passwords: Sequence[str],
        rules: Optional[Sequence[Rule]] = None,
        can_allocate_self: bool = False,
        timeout: timedelta = DEFAULT_TIMEOUT,
        name: str = "",
        worker_count: int = DEFAULT_WORKER_COUNT,
        max_picks: Optional[int] = DEFAULT_MAX_PICKS,
    ) -> None:
        if timeout <= timedelta(0):
            raise ConfigInvalid("timeout must have a value greater than 0")
        self.names: List[str] = normalise_names(names)
        self.passwords: List[str] = normalise_passwords(passwords)
        self.rules: List[Rule] = list(rules or [])
        self.can_allocate_self = can_allocate_self
        self.timeout = timeout
        self.name = name
        self.worker_count = worker_count
        self.max_picks = max_picks
        self.last_allocation: Optional[Allocation] = None

    @classmethod
    def from_config(
        cls,
        config: AllocationConfig,
        worker_count: int = DEFAULT_WORKER_COUNT,
        max_picks: Optional[int] = DEFAULT_MAX_PICKS,
    ) -> "Allocator":
        return cls(
            names=resolve_names(config),
            passwords=resolve_passwords(config),
            rules=config.rules,
            can_allocate_self=config.can_allocate_self,
            timeout=config.timeout,
            name=config.allocation_name,
            worker_count=worker_count,
            max_picks=max_picks,
        )

    def validate_setup(self) -> None:
        if len(self.names) < 2:
            raise SetupInvalid("Need at least 2 names.")
        if len(self.passwords) < 2:
            raise SetupInvalid("Need at least 2 passwords.")
        if len(self.names) > len(self.passwords):
            raise SetupInvalid("There must be the same or more passwords than names.")

    def validate_rules(self) -> RuleSet:
        return RuleSet.build(self.names, self.rules, can_allocate_self=self.can_allocate_self)

    async def allocate_async(self) -> Allocation:
        self.validate_setup()
        rule_set = self.validate_rules()

        players = await search(
            rule_set,
            self.names,
            self.passwords,
            timeout=self.timeout,
            worker_count=self.worker_count,
            max_picks=self.max_picks,
        )
        allocation = Allocation.from_players(players)
        self.last_allocation = allocation
        logger.bind(allocation_name=self.name, participants=len(self.names)).info("Allocation created")
        return allocation

    def allocate(self) -> Allocation:
        return asyncio.run(self.allocate_async())

    def envelope(self, allocation: Allocation) -> ArchiveEnvelope:
        return ArchiveEnvelope.from_allocation(allocation, self.name)
