"""Configuration management with layered YAML, mode selected by argument or environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from gpgscope.models import TrustModel

_PINENTRY_MODES = ("default", "ask", "cancel", "error", "loopback")


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Recursively merge overlay into base. Overlay values win."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, returning empty dict if file doesn't exist."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


class DeploymentConfig(BaseModel):
    mode: str = "local"
    log_level: str = "INFO"
    log_format: str = "text"
    log_dir: Optional[str] = None


class GPGConfig(BaseModel):
    """Immutable settings for one ``GPG`` instance.

    Keyrings are all-or-nothing: with both paths set every invocation is
    confined to those two files, with neither set gpg uses its defaults.
    """

    model_config = ConfigDict(frozen=True)

    executable: str = "gpg"
    public_keyring: Optional[Path] = None
    secret_keyring: Optional[Path] = None
    trust_model: Optional[TrustModel] = None
    pinentry_mode: Optional[str] = None
    timeout_seconds: Optional[float] = None

    @field_validator("pinentry_mode")
    @classmethod
    def known_pinentry_mode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in _PINENTRY_MODES:
            raise ValueError(f"pinentry_mode must be one of {_PINENTRY_MODES}, got {v!r}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def keyrings_come_in_pairs(self) -> GPGConfig:
        if (self.public_keyring is None) != (self.secret_keyring is None):
            raise ValueError("Must provide both public and secret keyring file, or neither")
        return self

    @property
    def scoped(self) -> bool:
        return self.public_keyring is not None and self.secret_keyring is not None


class GpgScopeConfig(BaseModel):
    deployment: DeploymentConfig = DeploymentConfig()
    gpg: GPGConfig = GPGConfig()

    @classmethod
    def load(
        cls,
        deployment_mode: Optional[str] = None,
        config_dir: Optional[Path] = None,
    ) -> GpgScopeConfig:
        """Load config from default.yaml, overlaid with deployment-specific YAML.

        The mode is the argument, else $GPGSCOPE_MODE, else deployment.mode
        from default.yaml, else "local". Values in config/{mode}.yaml win.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        base = _load_yaml(config_dir / "default.yaml")
        mode = deployment_mode or os.environ.get(
            "GPGSCOPE_MODE",
            base.get("deployment", {}).get("mode", "local"),
        )
        overlay = _load_yaml(config_dir / f"{mode}.yaml")
        merged = _deep_merge(base, overlay)
        merged.setdefault("deployment", {})["mode"] = mode

        return cls(**merged)
