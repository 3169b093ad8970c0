"""Keyring-scoped facade over the gpg command line tool."""

from gpgscope.config import GPGConfig, GpgScopeConfig
from gpgscope.errors import (
    FingerprintParseError,
    GPGCommandError,
    GPGError,
    GPGNotFoundError,
    GPGTimeoutError,
)
from gpgscope.gpg import GPG
from gpgscope.models import CommandResult, TrustModel
from gpgscope.parsing import parse_fingerprint

__all__ = [
    "CommandResult",
    "FingerprintParseError",
    "GPG",
    "GPGCommandError",
    "GPGConfig",
    "GPGError",
    "GPGNotFoundError",
    "GPGTimeoutError",
    "GpgScopeConfig",
    "TrustModel",
    "parse_fingerprint",
]
