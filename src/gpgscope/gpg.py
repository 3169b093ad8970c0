"""Keyring-scoped wrapper around the gpg command line tool."""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Optional, Sequence, Union

from gpgscope.config import GPGConfig
from gpgscope.errors import GPGCommandError
from gpgscope.models import CommandResult
from gpgscope.parsing import parse_fingerprint
from gpgscope.process.command import absolute_path, build_command
from gpgscope.process.invoker import Payload, run_command

logger = logging.getLogger(__name__)

PathType = Union[str, "os.PathLike[str]"]

# A str or PathLike names a file; bytes are the content itself.
Source = Union[PathType, bytes, bytearray, BinaryIO]

# Lists key material (secret keys included) without touching the keyring.
_SHOW_ONLY = ["--with-colons", "--import-options", "show-only", "--import"]


class GPG:
    """Runs gpg operations against an optional, isolated pair of keyrings.

    With ``public_keyring`` and ``secret_keyring`` configured, every
    invocation passes ``--no-default-keyring`` and both files, so instances
    never see the user's ``~/.gnupg`` keyrings or each other's. Without them
    gpg falls back to its default keyrings.

    Construction is eager: it fails with ``GPGNotFoundError`` when gpg cannot
    be executed and with ``GPGCommandError`` when gpg rejects a keyring file.

    Example::

        gpg = GPG(public_keyring="pub.gpg", secret_keyring="sec.gpg",
                  trust_model=TrustModel.ALWAYS)
        gpg.import_key(Path("pubkey.asc"))
        ciphertext = gpg.encrypt(b"hello", gpg.get_fingerprint(Path("pubkey.asc")))
    """

    def __init__(self, config: Optional[GPGConfig] = None, **settings) -> None:
        if config is not None and settings:
            raise TypeError("Pass either a GPGConfig or keyword settings, not both")
        self._config = config if config is not None else GPGConfig(**settings)
        self._version = self.check_version()
        if self._config.scoped:
            self._check_keyrings()
        logger.debug("GPG initialised: %s (scoped=%s)", self._version, self._config.scoped)

    @property
    def config(self) -> GPGConfig:
        return self._config

    @property
    def version(self) -> str:
        """First line of ``gpg --version``, captured at construction."""
        return self._version

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_version(self) -> str:
        """Verify that gpg can be executed and return its version line."""
        result = self._run(["--version"], scoped=False)
        lines = result.text("ascii").splitlines()
        return lines[0] if lines else ""

    def have_key(self, fingerprint: str) -> bool:
        """Return True if the keyring holds a key for *fingerprint*.

        gpg exits non-zero for an unknown key, so any command failure is
        read as absence.
        """
        try:
            self._run(["--fingerprint", fingerprint])
        except GPGCommandError:
            return False
        return True

    def get_fingerprint(self, source: Source) -> str:
        """Fingerprint of the key material in *source*, without importing it.

        Works for public and secret key material alike. gpg releases without
        the ``show-only`` import option get the older ``--with-fingerprint``
        listing instead, which cannot show secret key packets.
        """
        if _is_stream(source):
            source = _read_binary(source)  # may be sent twice
        args, payload = _split_source(source)
        try:
            result = self._run([*_SHOW_ONLY, *args], payload)
        except GPGCommandError as exc:
            if "import option" not in exc.stderr:
                raise
            logger.debug("gpg has no show-only import, using --with-fingerprint")
            result = self._run(["--with-fingerprint", "--with-colons", *args], payload)
        return parse_fingerprint(result.text())

    def import_key(self, source: Source) -> None:
        """Import key material unless a key with its fingerprint is present.

        gpg reports re-importing a known key as an error, so presence is
        checked first and the import skipped.
        """
        if _is_stream(source):
            source = _read_binary(source)  # needed twice: fingerprint, then import
        fingerprint = self.get_fingerprint(source)
        if self.have_key(fingerprint):
            logger.info("Key %s already present, skipping import", fingerprint)
            return
        args, payload = _split_source(source)
        self._run(["--import", *args], payload)
        logger.info("Imported key %s", fingerprint)

    def delete_public_key(self, fingerprint: str) -> None:
        """Delete a public key; a no-op if it is absent.

        Raises ``GPGCommandError`` while the matching secret key still
        exists. Delete the secret key first.
        """
        self._delete_key("--delete-key", fingerprint)

    def delete_secret_key(self, fingerprint: str) -> None:
        """Delete a secret key; a no-op if the key is absent."""
        self._delete_key("--delete-secret-keys", fingerprint)

    def encrypt(
        self,
        source: Source,
        recipient: str,
        output: Optional[PathType] = None,
    ) -> Optional[bytes]:
        """Encrypt *source* to the key with fingerprint *recipient*.

        Returns the ciphertext, or None when it was written to *output*.
        """
        args, payload = _split_source(source)
        result = self._run(
            ["-r", recipient, "--encrypt", *_output_args(output, stdout="-"), *args],
            payload,
        )
        return None if output is not None else result.stdout

    def decrypt(
        self,
        source: Source,
        passphrase: str,
        output: Optional[PathType] = None,
    ) -> Optional[bytes]:
        """Decrypt *source* with the secret key unlocked by *passphrase*.

        Returns the cleartext, or None when it was written to *output*. A
        wrong passphrase or damaged ciphertext raises ``GPGCommandError``.
        """
        args, payload = _split_source(source)
        result = self._run(
            ["--passphrase", passphrase, *_output_args(output), "-d", *args],
            payload,
        )
        return None if output is not None else result.stdout

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _delete_key(self, command: str, fingerprint: str) -> None:
        if not self.have_key(fingerprint):
            logger.info("Key %s not in keyring, nothing to delete", fingerprint)
            return
        self._run(["--yes", command, fingerprint])
        logger.info("Deleted key %s (%s)", fingerprint, command)

    def _check_keyrings(self) -> None:
        # gpg names the offending file in stderr if it cannot use a keyring.
        self._run(["--list-keys"])
        self._run(["--list-secret-keys"])

    def _run(
        self,
        args: Sequence[str],
        payload: Optional[Payload] = None,
        *,
        scoped: bool = True,
    ) -> CommandResult:
        command = build_command(
            args,
            executable=self._config.executable,
            trust_model=self._config.trust_model,
            pinentry_mode=self._config.pinentry_mode,
            public_keyring=self._config.public_keyring if scoped else None,
            secret_keyring=self._config.secret_keyring if scoped else None,
        )
        return run_command(command, payload, timeout=self._config.timeout_seconds)


def _is_stream(source: object) -> bool:
    return hasattr(source, "read")


def _read_binary(stream: BinaryIO) -> bytes:
    data = stream.read()
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"Expected a binary stream, read() returned {type(data).__name__}")
    return bytes(data)


def _split_source(source: Source) -> tuple[list[str], Optional[Payload]]:
    """Turn a source into (trailing file arguments, stdin payload)."""
    if isinstance(source, (str, os.PathLike)):
        return [absolute_path(source)], None
    if isinstance(source, (bytes, bytearray)):
        return [], source
    if _is_stream(source):
        return [], source
    raise TypeError(f"Expected a path, bytes or binary stream, got {type(source).__name__}")


def _output_args(output: Optional[PathType], stdout: Optional[str] = None) -> list[str]:
    if output is None:
        return ["--output", stdout] if stdout else []
    # gpg asks before overwriting, which fails in batch mode.
    return ["--yes", "--output", absolute_path(output)]
