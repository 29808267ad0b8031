from __future__ import annotations

from datetime import timedelta
from typing import Optional


class AllocatorError(RuntimeError):
    category = "AllocatorError"


class ConfigInvalid(AllocatorError):
    category = "ConfigInvalid"


class SetupInvalid(AllocatorError):
    category = "SetupInvalid"


class RuleInvalid(AllocatorError):
    category = "RuleInvalid"


class AllocationTimeout(AllocatorError):
    category = "AllocationTimeout"

    def __init__(self, timeout: timedelta, message: Optional[str] = None) -> None:
        self.timeout = timeout
        super().__init__(
            message
            or "Unable to find a suitable allocation with the given rules within "
            f"{format_duration(timeout)}. It may be impossible."
        )


class IOFailure(AllocatorError):
    category = "IOFailure"


class EncodingFailure(AllocatorError):
    category = "EncodingFailure"


def format_duration(value: timedelta) -> str:
    seconds = value.total_seconds()
    if seconds.is_integer():
        return f"{int(seconds)}s"
    return f"{seconds:g}s"
