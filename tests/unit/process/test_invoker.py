"""Unit tests for gpgscope.process.invoker.

The child processes here are small Python scripts standing in for gpg, so
the pipe handling is exercised for real without needing gpg installed.
"""

from __future__ import annotations

import io
import sys

import pytest

from gpgscope.errors import GPGCommandError, GPGNotFoundError, GPGTimeoutError
from gpgscope.process.invoker import run_command

# Copies stdin to stdout unchanged.
_CAT = "import shutil, sys; shutil.copyfileobj(sys.stdin.buffer, sys.stdout.buffer)"


def _python(script: str, *args: str) -> list[str]:
    return [sys.executable, "-c", script, *args]


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccess:
    def test_returns_stdout_bytes(self):
        result = run_command(_python("import sys; sys.stdout.buffer.write(b'hello\\x00world')"))
        assert result.ok
        assert result.returncode == 0
        assert result.stdout == b"hello\x00world"

    def test_stderr_does_not_leak_into_stdout(self):
        script = "import sys; sys.stderr.write('gpg: warning\\n'); sys.stdout.write('data')"
        result = run_command(_python(script))
        assert result.stdout == b"data"
        assert "gpg: warning" in result.stderr

    def test_no_payload_means_empty_stdin(self):
        script = "import sys; sys.stdout.write(str(len(sys.stdin.buffer.read())))"
        result = run_command(_python(script))
        assert result.stdout == b"0"

    def test_bytes_payload_is_piped_to_stdin(self):
        result = run_command(_python(_CAT), b"some key material")
        assert result.stdout == b"some key material"

    def test_stream_payload_is_piped_to_stdin(self):
        result = run_command(_python(_CAT), io.BytesIO(b"streamed"))
        assert result.stdout == b"streamed"

    def test_large_payload_does_not_deadlock(self):
        """Several MB in and out: far beyond any OS pipe buffer."""
        payload = bytes(range(256)) * (4 * 1024 * 16)  # 16 MiB
        result = run_command(_python(_CAT), payload, timeout=60)
        assert result.stdout == payload

    def test_large_stderr_and_stdout_together(self):
        script = (
            "import sys\n"
            "sys.stderr.write('e' * (1 << 20))\n"
            "sys.stdout.write('o' * (1 << 20))\n"
        )
        result = run_command(_python(script), timeout=60)
        assert len(result.stdout) == 1 << 20
        assert len(result.stderr) == 1 << 20

    def test_child_that_ignores_stdin_still_succeeds(self):
        """The writer hits a broken pipe; exit status 0 still wins."""
        result = run_command(_python("pass"), b"x" * (8 << 20), timeout=60)
        assert result.ok
        assert result.stdout == b""


# ---------------------------------------------------------------------------
# Failure
# ---------------------------------------------------------------------------


class TestFailure:
    def test_nonzero_exit_raises_with_stderr_verbatim(self):
        script = "import sys; sys.stderr.write('gpg: error reading key: No public key\\n'); sys.exit(2)"
        with pytest.raises(GPGCommandError) as exc_info:
            run_command(_python(script))
        assert str(exc_info.value) == "gpg: error reading key: No public key\n"
        assert exc_info.value.stderr == "gpg: error reading key: No public key\n"
        assert exc_info.value.returncode == 2

    def test_error_command_hides_passphrase(self):
        with pytest.raises(GPGCommandError) as exc_info:
            run_command(_python("import sys; sys.exit(2)", "--passphrase", "hunter2"))
        assert "hunter2" not in exc_info.value.command
        assert "******" in exc_info.value.command

    def test_missing_executable_raises_not_found(self):
        with pytest.raises(GPGNotFoundError) as exc_info:
            run_command(["/nonexistent/bin/gpg-does-not-exist", "--version"])
        assert exc_info.value.executable == "/nonexistent/bin/gpg-does-not-exist"

    def test_timeout_kills_the_process(self):
        with pytest.raises(GPGTimeoutError) as exc_info:
            run_command(_python("import time; time.sleep(30)"), timeout=0.5)
        assert exc_info.value.timeout == 0.5

    def test_empty_command_is_rejected(self):
        with pytest.raises(ValueError):
            run_command([])

    def test_text_stream_payload_surfaces_type_error(self):
        with pytest.raises(TypeError):
            run_command(_python(_CAT), io.StringIO("not bytes"))
