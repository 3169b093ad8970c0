"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pytest

from gpgscope.models import CommandResult

RESOURCES_DIR = Path(__file__).parent / "resources"

# Key A from the fixture set: RSA-1024, unprotected secret key.
FIXTURE_FINGERPRINT = "EF03765F59EE904930C8A781553A82A058C0C795"
FIXTURE_PLAINTEXT = b"I like turtles"

# Key B: RSA-2048 with an encryption subkey, secret key protected by a passphrase.
# protected_encrypted.asc decrypts to FIXTURE_PLAINTEXT.
PROTECTED_FINGERPRINT = "546BC802BAA72A3D2311226810E5C93C5533C477"
PROTECTED_PASSPHRASE = "JUnitPassphrase"

VERSION_OUTPUT = b"gpg (GnuPG) 2.2.40\nlibgcrypt 1.10.1\nCopyright (C) 2022 g10 Code GmbH\n"

COLON_REPORT = (
    "pub:-:1024:1:553A82A058C0C795:1669853469:::-:::scESC::::::23::0:\n"
    f"fpr:::::::::{FIXTURE_FINGERPRINT}:\n"
    "uid:-::::1669853469::5A4E2D6C3B6B3F0F::Key A (Generated by SaltStack) <keya@example>::::::::::0:\n"
)

# Secret key material listed with --import-options show-only.
SECRET_COLON_REPORT = (
    "sec:-:1024:1:553A82A058C0C795:1669853469:::-:::scESC:::+:::23::0:\n"
    f"fpr:::::::::{FIXTURE_FINGERPRINT}:\n"
    "grp:::::::::0D14C2D9B5B5F2A5D4A3B1E9F0C4D2A7B6E5F8C1:\n"
    "uid:-::::1669853469::5A4E2D6C3B6B3F0F::Key A (Generated by SaltStack) <keya@example>::::::::::0:\n"
)


@dataclass
class RecordedCall:
    command: list[str]
    payload: Any
    timeout: Optional[float]


class FakeRunner:
    """Stands in for ``run_command``.

    Records every invocation and replays scripted outcomes. Outcomes are
    registered per trigger token; the first command token that matches a
    trigger decides the outcome. Several outcomes for one trigger are used
    in order, the last one repeating.
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self._outcomes: dict[str, list[Any]] = {"--version": [VERSION_OUTPUT]}

    def on(self, trigger: str, *outcomes: Any) -> None:
        """Script *outcomes* (bytes for success stdout, or an exception)."""
        self._outcomes[trigger] = list(outcomes)

    def __call__(self, command, payload=None, timeout=None) -> CommandResult:
        command = list(command)
        if hasattr(payload, "read"):
            payload = payload.read()
        self.calls.append(RecordedCall(command, payload, timeout))

        outcome: Any = b""
        for token in command:
            queue = self._outcomes.get(token)
            if queue:
                outcome = queue.pop(0) if len(queue) > 1 else queue[0]
                break

        if isinstance(outcome, BaseException):
            raise outcome
        return CommandResult(command=command, returncode=0, stdout=outcome, stderr="")

    def commands_with(self, token: str) -> list[list[str]]:
        return [call.command for call in self.calls if token in call.command]

    def last_call(self) -> RecordedCall:
        return self.calls[-1]


@pytest.fixture
def resources() -> Path:
    return RESOURCES_DIR


@pytest.fixture
def fake_runner(monkeypatch) -> FakeRunner:
    """Patch the facade's process invoker with a recording fake."""
    runner = FakeRunner()
    monkeypatch.setattr("gpgscope.gpg.run_command", runner)
    return runner


@pytest.fixture
def fixture_fingerprint() -> str:
    return FIXTURE_FINGERPRINT


@pytest.fixture
def fixture_plaintext() -> bytes:
    return FIXTURE_PLAINTEXT


@pytest.fixture
def colon_report() -> bytes:
    return COLON_REPORT.encode()


@pytest.fixture
def secret_colon_report() -> bytes:
    return SECRET_COLON_REPORT.encode()


@pytest.fixture
def protected_fingerprint() -> str:
    return PROTECTED_FINGERPRINT


@pytest.fixture
def protected_passphrase() -> str:
    return PROTECTED_PASSPHRASE
