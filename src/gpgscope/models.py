"""Shared domain models for the gpgscope tool wrapper."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---- Enums ----


class TrustModel(str, Enum):
    """Values accepted by gpg's ``--trust-model`` option."""

    PGP = "pgp"
    CLASSIC = "classic"
    DIRECT = "direct"
    ALWAYS = "always"
    AUTO = "auto"


# ---- Invocation Models ----


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one finished gpg invocation."""

    command: list[str]
    returncode: int
    stdout: bytes
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def text(self, encoding: str = "utf-8") -> str:
        """Decode stdout, replacing undecodable bytes."""
        return self.stdout.decode(encoding, errors="replace")
