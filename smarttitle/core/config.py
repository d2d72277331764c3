"""Configuration for smart-title."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


_DEFAULT_CONFIG_PATH = "~/.smart-title/config.yaml"
_DEFAULT_SESSIONS_DIR = "~/.smart-title/sessions"
_PROJECT_CONFIG_NAME = ".smart-title.yaml"

# Keys that must hold a positive integer
_POSITIVE_INT_KEYS = ("update_threshold", "max_turns", "max_chars_per_message")

_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class Config:
    enabled: bool = True
    debug: bool = False

    # Model
    model: Optional[str] = None
    llm_timeout: float = 60.0
    api_keys: Dict[str, str] = field(default_factory=dict)
    fallback_models: Dict[str, str] = field(default_factory=dict)

    # Title updates
    update_threshold: int = 1
    max_turns: int = 5
    max_chars_per_message: int = 500

    # File-backed session host
    sessions_dir: str = _DEFAULT_SESSIONS_DIR

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        *,
        project_dir: Optional[str] = None,
    ) -> Config:
        """Load config from YAML, falling back to defaults.

        The global file is read first; ``<project_dir>/.smart-title.yaml``
        overrides individual keys when present. Environment variables win
        over both.
        """
        cfg = cls()

        cfg._apply(_read_yaml(config_path(path)))
        if project_dir:
            cfg._apply(_read_yaml(Path(project_dir).expanduser() / _PROJECT_CONFIG_NAME))

        # Environment overrides
        if env_model := os.getenv("SMART_TITLE_MODEL"):
            cfg.model = env_model
        if env_threshold := os.getenv("SMART_TITLE_THRESHOLD"):
            cfg._apply({"update_threshold": env_threshold})
        if env_debug := os.getenv("SMART_TITLE_DEBUG"):
            cfg.debug = _as_bool(env_debug)

        return cfg

    def _apply(self, data: Dict[str, Any]) -> None:
        if "enabled" in data:
            self.enabled = _as_bool(data["enabled"])
        if "debug" in data:
            self.debug = _as_bool(data["debug"])
        if "model" in data:
            self.model = str(data["model"] or "").strip() or None
        if "llm_timeout" in data:
            try:
                timeout = float(data["llm_timeout"])
            except (TypeError, ValueError):
                timeout = 0.0
            if timeout > 0:
                self.llm_timeout = timeout
            else:
                logger.warning(
                    f"Ignoring invalid llm_timeout={data['llm_timeout']!r}, keeping {self.llm_timeout}"
                )
        if isinstance(data.get("api_keys"), dict):
            self.api_keys.update(
                {str(k): str(v) for k, v in data["api_keys"].items() if v}
            )
        if isinstance(data.get("fallback_models"), dict):
            self.fallback_models.update(
                {str(k): str(v or "") for k, v in data["fallback_models"].items()}
            )
        if "sessions_dir" in data:
            self.sessions_dir = str(data["sessions_dir"])

        for key in _POSITIVE_INT_KEYS:
            if key not in data:
                continue
            try:
                value = int(data[key])
            except (TypeError, ValueError):
                value = 0
            if value < 1:
                logger.warning(
                    f"Ignoring invalid {key}={data[key]!r}, keeping {getattr(self, key)}"
                )
                continue
            setattr(self, key, value)

    @property
    def resolved_sessions_dir(self) -> Path:
        return Path(self.sessions_dir).expanduser()

    @staticmethod
    def set_config(key: str, value: Any, path: Optional[str] = None) -> Path:
        """Write a single key into the global config file, keeping the rest."""
        target = config_path(path)
        data: Dict[str, Any] = {}
        if target.exists():
            data = yaml.safe_load(target.read_text()) or {}
        data[key] = value
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(yaml.safe_dump(data, sort_keys=False))
        return target


def config_path(path: Optional[str] = None) -> Path:
    """Resolve the global config file (prefers .yaml, accepts .yml)."""
    p = Path(
        path or os.getenv("SMART_TITLE_CONFIG", _DEFAULT_CONFIG_PATH)
    ).expanduser()
    if not p.exists() and p.suffix == ".yaml":
        alt = p.with_suffix(".yml")
        if alt.exists():
            return alt
    return p


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to read config from {path}: {e}; using defaults")
        return {}
    if not isinstance(data, dict):
        logger.error(f"Config {path} is not a mapping; using defaults")
        return {}
    return data
