"""Assemble gpg command lines from configuration and operation arguments."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional, Union

from gpgscope.models import TrustModel

# Tokens whose following value must never reach a log line.
_SECRET_OPTIONS = frozenset({"--passphrase"})
_MASK = "******"


class CommandBuilder:
    """Accumulates the tokens of a single gpg invocation.

    Every command starts with ``--batch --no-tty`` so gpg never prompts.
    Trust model, pinentry mode and keyring scoping follow when configured,
    and the operation arguments always come last.
    """

    def __init__(self, executable: str = "gpg") -> None:
        self._tokens: list[str] = [executable, "--batch", "--no-tty"]

    def with_flag(self, flag: str) -> CommandBuilder:
        self._tokens.append(flag)
        return self

    def with_option(self, option: str, value: str) -> CommandBuilder:
        self._tokens.extend([option, value])
        return self

    def with_args(self, args: Iterable[str]) -> CommandBuilder:
        self._tokens.extend(args)
        return self

    def with_trust_model(self, trust_model: Optional[TrustModel]) -> CommandBuilder:
        if trust_model is not None:
            self.with_option("--trust-model", TrustModel(trust_model).value)
        return self

    def with_pinentry_mode(self, mode: Optional[str]) -> CommandBuilder:
        if mode:
            self.with_option("--pinentry-mode", mode)
        return self

    def with_keyrings(
        self,
        public_keyring: Optional[Path],
        secret_keyring: Optional[Path],
    ) -> CommandBuilder:
        """Replace gpg's default keyrings, but only for a complete pair."""
        if public_keyring is not None and secret_keyring is not None:
            self.with_flag("--no-default-keyring")
            self.with_option("--secret-keyring", absolute_path(secret_keyring))
            self.with_option("--keyring", absolute_path(public_keyring))
        return self

    def build(self) -> list[str]:
        return list(self._tokens)

    def __str__(self) -> str:
        return render_command(self._tokens)


def build_command(
    args: Iterable[str],
    *,
    executable: str = "gpg",
    trust_model: Optional[TrustModel] = None,
    pinentry_mode: Optional[str] = None,
    public_keyring: Optional[Path] = None,
    secret_keyring: Optional[Path] = None,
) -> list[str]:
    """Return the full token list for one gpg invocation."""
    return (
        CommandBuilder(executable)
        .with_trust_model(trust_model)
        .with_pinentry_mode(pinentry_mode)
        .with_keyrings(public_keyring, secret_keyring)
        .with_args(args)
        .build()
    )


def redact(command: Iterable[str]) -> list[str]:
    """Copy *command* with the values of secret-bearing options masked."""
    redacted: list[str] = []
    mask_next = False
    for token in command:
        redacted.append(_MASK if mask_next else token)
        mask_next = token in _SECRET_OPTIONS
    return redacted


def render_command(command: Iterable[str]) -> str:
    return " ".join(redact(command))


def absolute_path(path: Union[str, "os.PathLike[str]"]) -> str:
    # gpg resolves bare keyring names against its home directory.
    return os.path.abspath(os.fspath(path))
