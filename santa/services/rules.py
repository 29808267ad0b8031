from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Mapping, Optional, Sequence

from loguru import logger

from santa.core.errors import RuleInvalid

if TYPE_CHECKING:
    from santa.services.config_file import Rule


def normalise_name(name: str) -> str:
    return name.strip().lower()


@dataclass(frozen=True)
class RuleSet:
    """Forbidden and forced recipients, keyed by the santa's canonical name."""

    forbid: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    force: Mapping[str, str] = field(default_factory=dict)
    can_allocate_self: bool = False

    @classmethod
    def build(
        cls,
        names: Sequence[str],
        rules: Optional[Sequence["Rule"]] = None,
        can_allocate_self: bool = False,
    ) -> "RuleSet":
        known = set(names)

        def require_known(name: str, kind: str) -> str:
            if name not in known:
                raise RuleInvalid(f"Name [{name}] in {kind} rule is not in the list of names.")
            return name

        forbid: Dict[str, List[str]] = {}
        force: Dict[str, str] = {}
        forced_by: Dict[str, str] = {}

        for rule in rules or []:
            santa = require_known(normalise_name(rule.name), "santa")
            for banned in rule.cannot_get:
                banned = normalise_name(banned)
                require_known(banned, "exclusion")
                _append_unique(forbid, santa, banned)
                if rule.inverse:
                    _append_unique(forbid, banned, santa)

            if rule.must_get:
                santee = require_known(normalise_name(rule.must_get), "must get")
                if force.get(santa, santee) != santee:
                    raise RuleInvalid(f"Name [{santa}] has more than one must get rule.")
                if forced_by.get(santee, santa) != santa:
                    raise RuleInvalid(f"Name [{santee}] is in multiple must get rules.")
                if santa == santee and not can_allocate_self:
                    raise RuleInvalid(f"Name [{santa}] must get themselves but self allocation is disabled.")
                force[santa] = santee
                forced_by[santee] = santa

        for santa, banned in forbid.items():
            if len(banned) > len(known):
                raise RuleInvalid(f"Name [{santa}] has more exclusion rules than names.")

        for santa, santee in force.items():
            if santee in forbid.get(santa, ()):
                raise RuleInvalid(
                    f"Name [{santa}] must get [{santee}] but is also excluded from getting them."
                )

        logger.bind(forbid_count=len(forbid), force_count=len(force)).debug("Rule set built")
        return cls(
            forbid=MappingProxyType({santa: frozenset(banned) for santa, banned in forbid.items()}),
            force=MappingProxyType(dict(force)),
            can_allocate_self=can_allocate_self,
        )

    def is_valid(self, giver: str, recipient: str) -> bool:
        if giver == recipient and not self.can_allocate_self:
            return False
        return recipient not in self.forbid.get(giver, frozenset())


def _append_unique(target: Dict[str, List[str]], key: str, value: str) -> None:
    values = target.setdefault(key, [])
    if value not in values:
        values.append(value)
