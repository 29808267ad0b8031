from __future__ import annotations

import base64
import binascii
import datetime
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from santa.core.errors import EncodingFailure
from santa.services.players import Player

CREATED_FORMAT = "%m-%d-%Y %H:%M:%S"


@dataclass(frozen=True)
class Allocation:
    """Immutable result of a completed search."""

    names: Tuple[str, ...]
    created: datetime.datetime
    aliases: Mapping[str, str]
    allocations: Mapping[str, str]
    players: Tuple[Player, ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def from_players(cls, players: Sequence[Player]) -> "Allocation":
        aliases: Dict[str, str] = {}
        allocations: Dict[str, str] = {}
        for player in players:
            if player.alias is None or player.gives_to is None:
                raise ValueError(f"Player {player.name} is not fully allocated.")
            aliases[player.name] = player.alias
            allocations[player.name] = player.gives_to.name
        return cls(
            names=tuple(player.name for player in players),
            created=datetime.datetime.now().astimezone(),
            aliases=MappingProxyType(aliases),
            allocations=MappingProxyType(allocations),
            players=tuple(players),
        )

    def alias_book(self) -> Dict[str, str]:
        return dict(self.aliases)

    def gift_sheet(self) -> Dict[str, str]:
        return {name: self.aliases[recipient] for name, recipient in self.allocations.items()}

    def name_to_name(self) -> Dict[str, str]:
        return dict(self.allocations)

    def describe(self) -> str:
        lines = [f"Created at {self.created.strftime(CREATED_FORMAT)}", "Aliases:"]
        lines.extend(f"{name} -> {alias}" for name, alias in self.aliases.items())
        lines.append("")
        lines.append("Allocations:")
        lines.extend(f"{name} -> {recipient}" for name, recipient in self.allocations.items())
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class ArchiveEnvelope:
    allocation_name: str
    created: datetime.datetime
    allocated_passwords: Dict[str, str]
    allocation: str

    @classmethod
    def from_allocation(cls, allocation: Allocation, allocation_name: str) -> "ArchiveEnvelope":
        return cls(
            allocation_name=allocation_name,
            created=allocation.created,
            allocated_passwords=allocation.gift_sheet(),
            allocation=encode_allocation(allocation),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocation_name": self.allocation_name,
            "created": self.created.isoformat(),
            "allocated_passwords": dict(self.allocated_passwords),
            "allocation": self.allocation,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ArchiveEnvelope":
        try:
            created = data["created"]
            if isinstance(created, str):
                created = datetime.datetime.fromisoformat(created)
            if not isinstance(created, datetime.datetime):
                raise TypeError(f"created must be a timestamp, got {created!r}")
            return cls(
                allocation_name=str(data.get("allocation_name") or ""),
                created=created,
                allocated_passwords={str(k): str(v) for k, v in dict(data["allocated_passwords"]).items()},
                allocation=str(data["allocation"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise EncodingFailure(f"Archive record is malformed: {exc}") from exc


def encode_allocation(allocation: Allocation) -> str:
    payload = {
        "aliases": dict(allocation.aliases),
        "allocations": dict(allocation.allocations),
        "created": allocation.created.isoformat(),
    }
    try:
        data = json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingFailure(f"Unable to marshal allocation: {exc}") from exc
    return base64.b64encode(data).decode("ascii")


def decode_allocation(blob: str) -> Allocation:
    try:
        payload = json.loads(base64.b64decode(blob, validate=True))
        aliases = dict(payload["aliases"])
        allocations = dict(payload["allocations"])
        created = datetime.datetime.fromisoformat(payload["created"])
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise EncodingFailure(f"Unable to decode allocation: {exc}") from exc

    names: List[str] = list(aliases)
    return Allocation(
        names=tuple(names),
        created=created,
        aliases=MappingProxyType(aliases),
        allocations=MappingProxyType(allocations),
    )


def format_mapping(title: str, mapping: Mapping[str, str]) -> str:
    lines = [title]
    lines.extend(f"{key} -> {value}" for key, value in mapping.items())
    return "\n".join(lines)
