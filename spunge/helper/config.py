# spunge/helper/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ValidationError, model_validator

from .errors import ConfigError


def _env_int(name: str, default: int, base: int = 10) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw, base)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class SpongeCfg:
    read_size: int = 4096         # bytes per read from the input
    default_mode: int = 0o600     # permission bits for a target that did not exist
    sponge_prefix: str = ".sponge"

    def __post_init__(self) -> None:
        if self.read_size <= 0:
            raise ConfigError(f"read size must be positive, got {self.read_size}")
        if not 0 <= self.default_mode <= 0o7777:
            raise ConfigError(f"invalid default mode {self.default_mode:o}")

    @classmethod
    def from_env(cls) -> "SpongeCfg":
        return cls(
            read_size=_env_int("SPUNGE_READ_SIZE", 4096),
            default_mode=_env_int("SPUNGE_DEFAULT_MODE", 0o600, base=8),
        )


class Options(BaseModel):
    """What the user asked for on one invocation."""

    target: str
    input: Optional[str] = None
    backup: Optional[str] = None
    tmpdir: Optional[str] = None
    memory: bool = False
    atomic: bool = False
    leave_dirty: bool = False

    @model_validator(mode="after")
    def _atomic_needs_memory(self) -> "Options":
        if self.atomic and not self.memory:
            raise ValueError("--atomic makes no sense without --memory")
        return self

    @classmethod
    def from_targets(cls, targets: List[str], **kwargs) -> "Options":
        """
        Build Options from the positional arguments.

        Raises ConfigError unless exactly one target was given or when the
        flag combination is invalid.
        """
        if not targets:
            raise ConfigError("Destination file required.")
        if len(targets) > 1:
            raise ConfigError("Can only sponge to one destination.")
        try:
            return cls(target=targets[0], **kwargs)
        except ValidationError as exc:
            msgs = [e["msg"].removeprefix("Value error, ") for e in exc.errors()]
            raise ConfigError("; ".join(msgs)) from exc
