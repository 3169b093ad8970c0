"""Run gpg as a child process and collect what it writes.

Input writing and output draining happen on separate threads while the
process runs. Writing the whole payload before reading anything deadlocks
as soon as gpg fills its stdout pipe before it has consumed its stdin.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import BinaryIO, Callable, Optional, Sequence, Union

from gpgscope.errors import GPGCommandError, GPGNotFoundError, GPGTimeoutError
from gpgscope.models import CommandResult
from gpgscope.process.command import redact, render_command

logger = logging.getLogger(__name__)

Payload = Union[bytes, bytearray, memoryview, BinaryIO]

_CHUNK_SIZE = 64 * 1024


class _Pump(threading.Thread):
    """Daemon thread that remembers the exception its work raised."""

    def __init__(self, work: Callable[..., None], *args, name: str) -> None:
        super().__init__(name=name, daemon=True)
        self._work = work
        self._work_args = args
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            self._work(*self._work_args)
        except BaseException as exc:
            self.error = exc


def run_command(
    command: Sequence[str],
    payload: Optional[Payload] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Execute *command*, optionally piping *payload* into its stdin.

    Args:
        command: Full token list; the first token is the executable.
        payload: Bytes or a binary file-like object to feed on stdin. When
            omitted, stdin is attached to ``/dev/null``.
        timeout: Seconds to wait before killing the process. ``None`` waits
            forever.

    Returns:
        The finished invocation. Only returned when gpg exited with 0.

    Raises:
        GPGNotFoundError: The executable could not be started.
        GPGCommandError: Non-zero exit; carries gpg's stderr verbatim.
        GPGTimeoutError: *timeout* elapsed and the process was killed.
    """
    if not command:
        raise ValueError("Cannot run an empty command")

    safe_command = redact(command)
    logger.debug("Starting: %s", render_command(command))

    try:
        process = subprocess.Popen(
            list(command),
            stdin=subprocess.PIPE if payload is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise GPGNotFoundError(
            f"Cannot execute {command[0]!r}: {exc.strerror or exc}",
            executable=command[0],
        ) from exc

    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []

    with process:
        pumps = [
            _Pump(_drain, process.stdout, stdout_chunks, name="gpg-stdout"),
            _Pump(_drain, process.stderr, stderr_chunks, name="gpg-stderr"),
        ]
        if payload is not None:
            pumps.append(_Pump(_feed, payload, process.stdin, name="gpg-stdin"))
        for pump in pumps:
            pump.start()

        try:
            returncode = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            _kill(process, pumps)
            raise GPGTimeoutError(
                f"gpg did not finish within {timeout} seconds",
                timeout=timeout or 0.0,
                command=safe_command,
            ) from exc
        except BaseException:
            _kill(process, pumps)
            raise

        error = _join(pumps)
        if error is not None:
            raise error

    stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace")
    if returncode != 0:
        logger.debug("gpg exited with status %d: %s", returncode, stderr.strip())
        raise GPGCommandError(stderr, returncode=returncode, command=safe_command)

    return CommandResult(
        command=safe_command,
        returncode=returncode,
        stdout=b"".join(stdout_chunks),
        stderr=stderr,
    )


# ------------------------------------------------------------------
# Pumps
# ------------------------------------------------------------------


def _drain(stream: BinaryIO, chunks: list[bytes]) -> None:
    while True:
        chunk = stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)


def _feed(payload: Payload, stdin: BinaryIO) -> None:
    sent = 0
    try:
        if isinstance(payload, (bytes, bytearray, memoryview)):
            view = memoryview(payload)
            for start in range(0, len(view), _CHUNK_SIZE):
                sent += _write_all(stdin, view[start:start + _CHUNK_SIZE])
        else:
            while True:
                chunk = payload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                sent += _write_all(stdin, chunk)
    except BrokenPipeError:
        # gpg stopped reading; its exit status tells the caller why.
        logger.debug("gpg closed stdin after %d bytes", sent)
    finally:
        stdin.close()
    logger.debug("Piped %d bytes into gpg stdin", sent)


def _write_all(stream: BinaryIO, data) -> int:
    view = memoryview(data)
    written = 0
    while written < len(view):
        written += stream.write(view[written:]) or 0
    return written


def _join(pumps: list[_Pump]) -> Optional[BaseException]:
    for pump in pumps:
        pump.join()
    return next((pump.error for pump in pumps if pump.error is not None), None)


def _kill(process: subprocess.Popen, pumps: list[_Pump]) -> None:
    process.kill()
    process.wait()
    _join(pumps)
