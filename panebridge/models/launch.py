"""Launch specification for new assistant instances."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum


class LaunchMode(str, Enum):
    """Which consumer command started the routing operation."""

    CONTINUE = "continue"  # existing-or-new, new instances resume the last conversation
    NEW = "new"  # always a fresh instance, no continuation

    @property
    def uses_existing(self) -> bool:
        return self == LaunchMode.CONTINUE


@dataclass(frozen=True)
class LaunchSpec:
    """Program and arguments for a new assistant window."""

    program: str
    args: tuple[str, ...] = ()

    @property
    def full_command(self) -> str:
        """Return the full command string for shell execution."""
        parts = [self.program, *self.args]
        return " ".join(shlex.quote(p) for p in parts)
