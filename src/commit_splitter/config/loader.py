"""
Configuration loader for commit_splitter.

The tools read an optional JSON configuration file named ``config.json``
located in the ``~/.aisplit/`` directory in the user's home directory.
Every key is optional: when the file is missing the defaults are used,
so the tools keep working (with the rule-based fallbacks) even when no
LLM server has been configured.

If the file exists but is malformed or holds values of the wrong type,
a :class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where logging has not been configured. The CLI configures the root
# logger explicitly.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILENAME = "config.json"


class ConfigError(Exception):
    """Raised when the configuration file is malformed or invalid."""

    pass


@dataclass
class SplitterConfig:
    """Settings shared by the splitter, watcher and session wrapper."""

    base_url: str = "http://localhost"
    port: int = 11434
    model: str = "llama3"
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None
    max_diff_preview_lines: int = 5
    max_title_diff_lines: int = 10
    max_commit_title_length: int = 50
    max_turns: int = 2
    debounce_ms: int = 500
    min_commit_interval_ms: int = 400

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SplitterConfig":
        """Build a config from a parsed JSON object, validating types."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        for key in ("base_url", "model"):
            if key in data and not isinstance(data[key], str):
                raise ConfigError(f"'{key}' must be a string")
        if "request_timeout" in data and (
            isinstance(data["request_timeout"], bool)
            or not isinstance(data["request_timeout"], (int, float))
        ):
            raise ConfigError("'request_timeout' must be a number")
        if "max_tokens" in data and data["max_tokens"] is not None and not _is_int(data["max_tokens"]):
            raise ConfigError("'max_tokens' must be an integer")

        int_keys = (
            "port",
            "max_diff_preview_lines",
            "max_title_diff_lines",
            "max_commit_title_length",
            "max_turns",
            "debounce_ms",
            "min_commit_interval_ms",
        )
        for key in int_keys:
            if key in data:
                if not _is_int(data[key]):
                    raise ConfigError(f"'{key}' must be an integer")
                if data[key] < 0:
                    raise ConfigError(f"'{key}' must not be negative")

        if data.get("max_commit_title_length", 50) < 4:
            # Truncation keeps max - 3 characters plus an ellipsis.
            raise ConfigError("'max_commit_title_length' must be at least 4")
        if data.get("max_turns", 1) < 1:
            raise ConfigError("'max_turns' must be at least 1")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown configuration keys: %s", unknown)

        values = {key: value for key, value in data.items() if key in known}
        if "request_timeout" in values:
            values["request_timeout"] = float(values["request_timeout"])
        return cls(**values)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _get_config_directory() -> Path:
    """Return the directory holding the aisplit configuration (``~/.aisplit``)."""
    return Path.home() / ".aisplit"


def load_config(config_path: Optional[Path] = None) -> SplitterConfig:
    """Load the configuration and return it.

    Args:
        config_path: Explicit path to a configuration file. When omitted,
            ``~/.aisplit/config.json`` is used.

    Returns:
        The validated :class:`SplitterConfig`. Defaults are returned when
        the file does not exist.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or
            holds values of the wrong type.
    """
    if config_path is None:
        config_path = _get_config_directory() / CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return SplitterConfig()

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    config = SplitterConfig.from_dict(data)
    logger.debug("Loaded configuration from: %s", config_path)
    return config
