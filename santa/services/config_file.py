"""Loading of the allocation configuration file.

The configuration is YAML::

    allocation_name: Friendmas 2024
    names:
      file: names.txt          # one name per line
      data: ["sam", "tom"]     # unioned with the file
    passwords:
      data: ["password1", "password2"]
    canAllocateSelf: false
    timeout: 5s
    rules:
      - name: sam
        cannotGet: ["tom"]
        inverse: true
      - name: jim
        mustGet: sam
"""
from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from santa.core.errors import ConfigInvalid, IOFailure
from santa.services.rules import normalise_name

DEFAULT_TIMEOUT = timedelta(seconds=5)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


class ListSource(BaseModel):
    file: Optional[str] = None
    data: List[str] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _scalars_as_text(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [_scalar_text(item) for item in value]

    def is_empty(self) -> bool:
        return not self.file and not self.data


class Rule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    cannot_get: List[str] = Field(default_factory=list, alias="cannotGet")
    must_get: Optional[str] = Field(default=None, alias="mustGet")
    inverse: bool = False


class AllocationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    names: ListSource = Field(default_factory=ListSource)
    passwords: ListSource = Field(default_factory=ListSource)
    can_allocate_self: bool = Field(default=False, alias="canAllocateSelf")
    timeout: timedelta = DEFAULT_TIMEOUT
    rules: List[Rule] = Field(default_factory=list)
    allocation_name: str = ""

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and _DURATION_PART.search(value):
            return parse_duration(value)
        return value

    @model_validator(mode="after")
    def _check_required(self) -> "AllocationConfig":
        if self.names.is_empty():
            raise ValueError("must provide either a filename or name data in config")
        if self.passwords.is_empty():
            raise ValueError("must provide either a filename or password data in config")
        if self.timeout <= timedelta(0):
            raise ValueError("timeout must have a value greater than 0")
        return self


def _scalar_text(value: Any) -> Any:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


def parse_duration(value: str) -> timedelta:
    """Parse durations such as ``"5s"``, ``"500ms"`` or ``"1h30m"``."""
    text = value.strip()
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text) or not text:
        raise ValueError(f"invalid duration {value!r}")
    try:
        return timedelta(seconds=seconds)
    except OverflowError as exc:
        raise ValueError(f"duration {value!r} is too large") from exc


def load_config_from_yaml(yaml_data: Union[str, bytes]) -> AllocationConfig:
    try:
        raw = yaml.safe_load(yaml_data)
    except yaml.YAMLError as exc:
        raise ConfigInvalid(f"Unable to parse config YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigInvalid("Config must be a YAML mapping.")

    try:
        return AllocationConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigInvalid(_describe_validation_error(exc)) from exc


def load_config(path: Union[str, Path]) -> AllocationConfig:
    path = Path(path)
    try:
        yaml_data = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"Unable to read config file {path}: {exc}") from exc

    config = load_config_from_yaml(yaml_data)
    return config.model_copy(
        update={
            "names": _relative_to(config.names, path.parent),
            "passwords": _relative_to(config.passwords, path.parent),
        }
    )


def read_list_file(path: Union[str, Path]) -> List[str]:
    try:
        with open(path, encoding="utf-8") as handle:
            return [line.rstrip("\r\n") for line in handle if line.strip()]
    except OSError as exc:
        raise IOFailure(f"Unable to read list file {path}: {exc}") from exc


def resolve_names(config: AllocationConfig) -> List[str]:
    return normalise_names(_load_source(config.names))


def resolve_passwords(config: AllocationConfig) -> List[str]:
    return normalise_passwords(_load_source(config.passwords))


def normalise_names(names: Iterable[str]) -> List[str]:
    return dedupe(normalise_name(name) for name in names)


def normalise_passwords(passwords: Iterable[str]) -> List[str]:
    return dedupe(password.strip() for password in passwords)


def dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(item for item in items if item))


def _load_source(source: ListSource) -> List[str]:
    items: List[str] = []
    if source.file:
        items.extend(read_list_file(source.file))
    items.extend(source.data)
    return items


def _relative_to(source: ListSource, base_dir: Path) -> ListSource:
    if not source.file or Path(source.file).is_absolute():
        return source
    return source.model_copy(update={"file": str(base_dir / source.file)})


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "Invalid config: " + "; ".join(parts)
