"""Structured logging setup using structlog.

gpgscope modules log through ``logging.getLogger(__name__)``. The handlers
installed here render those stdlib records with structlog's processors, so
``json`` mode yields one JSON object per line for both stdlib and structlog
loggers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

_MASK = "******"
_SECRET_KEYS = ("passphrase",)


def _mask_secrets(logger, method_name: str, event_dict: dict) -> dict:
    """Mask passphrase values bound as structured context."""
    for key in _SECRET_KEYS:
        if event_dict.get(key) is not None:
            event_dict[key] = _MASK
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_dir: str | None = None,
) -> None:
    """Configure logging for the gpgscope CLI.

    Records go to stderr; stdout is reserved for ciphertext, cleartext and
    fingerprints printed by the CLI.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" for one JSON object per line, "text" for console output.
        log_dir: Also append to ``<log_dir>/gpgscope.log`` when set.
    """
    shared: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _mask_secrets,
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path / "gpgscope.log"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
