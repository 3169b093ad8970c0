"""Command construction and process execution for gpg invocations."""

from gpgscope.process.command import CommandBuilder, build_command, redact, render_command
from gpgscope.process.invoker import run_command

__all__ = ["CommandBuilder", "build_command", "redact", "render_command", "run_command"]
