"""Exception hierarchy for everything that can go wrong talking to gpg."""

from __future__ import annotations

from typing import Optional


class GPGError(Exception):
    """Base for all gpgscope errors."""


class GPGCommandError(GPGError):
    """gpg exited with a non-zero status.

    The message is gpg's captured stderr, unmodified, so callers can match on
    the tool's own wording (e.g. "there is a secret key for public key").
    """

    def __init__(
        self,
        stderr: str,
        returncode: int = 2,
        command: Optional[list[str]] = None,
    ):
        super().__init__(stderr)
        self.stderr = stderr
        self.returncode = returncode
        self.command = command or []


class GPGNotFoundError(GPGError):
    """The gpg executable could not be started at all."""

    def __init__(self, message: str, executable: str = "gpg"):
        super().__init__(message)
        self.executable = executable


class GPGTimeoutError(GPGError):
    """gpg did not finish within the configured deadline and was killed."""

    def __init__(self, message: str, timeout: float = 0.0, command: Optional[list[str]] = None):
        super().__init__(message)
        self.timeout = timeout
        self.command = command or []


class FingerprintParseError(RuntimeError):
    """gpg's fingerprint report did not contain a recognisable fingerprint.

    Not a ``GPGError``: gpg succeeded but printed something this package does
    not understand, so handlers for tool failures must not absorb it.
    """

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output
