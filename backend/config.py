"""
Runtime Configuration for ShopTalk.

One process-wide RuntimeConfig holds the provider connection, model names,
timeouts and agent-loop limits. Defaults come from the environment; the
tunable values can be changed while running through update(). Agents read
runtime_config at call time, so an update applies from the next turn on.

Usage:
    from config import runtime_config
    timeout = runtime_config.llm_timeout
    runtime_config.update(max_iterations=6, model_agent="gpt-4o")
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields
from threading import Lock
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MODEL_NAME_RE = re.compile(r"^[a-zA-Z0-9._:/-]{1,100}$")

# Never accepted by update(); rotate credentials through the environment
_PROTECTED = frozenset({"llm_api_key"})


def _first_env(*keys: str, default: str) -> str:
    """Return the first non-empty environment value from keys, else default."""
    for key in keys:
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return default


def _env_number(key: str, default: Any, cast: Callable[[str], Any]) -> Any:
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}, using {default}")
        return default


@dataclass
class RuntimeConfig:
    """
    Runtime-adjustable settings for the agent runtime.

    Fields are read fresh on every provider call and every new turn.
    """

    # Provider connection
    llm_base_url: str = field(default_factory=lambda: os.environ.get("OPENAI_BASE_URL", "").strip().rstrip("/"))
    llm_api_key: str = field(default_factory=lambda: os.environ.get("OPENAI_API_KEY", ""), repr=False)

    # Models: the classifier falls back to the agent model
    model_agent: str = field(default_factory=lambda: _first_env("LLM_AGENT_MODEL", default=DEFAULT_MODEL))
    model_classifier: str = field(
        default_factory=lambda: _first_env("LLM_CLASSIFIER_MODEL", "LLM_AGENT_MODEL", default=DEFAULT_MODEL)
    )

    # Seconds; llm_timeout bounds a whole provider call (or a whole stream)
    llm_timeout: float = field(default_factory=lambda: _env_number("LLM_TIMEOUT", 120.0, float))
    llm_connect_timeout: float = field(default_factory=lambda: _env_number("LLM_CONNECT_TIMEOUT", 10.0, float))

    # Agent loop
    max_iterations: int = field(default_factory=lambda: _env_number("AGENT_MAX_ITERATIONS", 10, int))
    classifier_history: int = field(default_factory=lambda: _env_number("CLASSIFIER_HISTORY", 5, int))

    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO")

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)
    _update_count: int = field(default=0, repr=False)

    # Inclusive bounds for numeric settings
    _VALIDATION_RANGES: Dict[str, tuple] = field(default_factory=lambda: {
        "llm_timeout": (1.0, 600.0),
        "llm_connect_timeout": (0.5, 120.0),
        "max_iterations": (1, 50),
        "classifier_history": (0, 50),
    }, repr=False)

    def _validate(self, key: str, value: Any):
        """Return the value to store, or raise ValueError with the rejection reason."""
        if key.startswith("model_"):
            if not isinstance(value, str) or not MODEL_NAME_RE.match(value):
                raise ValueError(f"invalid model name {value!r}")
            return value

        if key == "llm_base_url":
            cleaned = value.strip() if isinstance(value, str) else None
            if cleaned is None or (cleaned and not cleaned.startswith(("http://", "https://"))):
                raise ValueError(f"invalid URL {value!r}")
            return cleaned.rstrip("/")

        if key == "log_level":
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
            return value.upper()

        if key in self._VALIDATION_RANGES:
            lo, hi = self._VALIDATION_RANGES[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not (lo <= value <= hi):
                raise ValueError(f"must be {lo}-{hi}")
        return value

    def update(self, **kwargs) -> Dict[str, Any]:
        """
        Update configuration values at runtime.

        Args:
            **kwargs: Key-value pairs to update (e.g., max_iterations=6)

        Returns:
            Dict with 'updated' (changed keys), 'ignored' (unknown or rejected
            keys) and 'update_count'
        """
        updated = []
        ignored = []

        with self._lock:
            for key, value in kwargs.items():
                if key.startswith("_") or key in _PROTECTED or not hasattr(self, key):
                    ignored.append(key)
                    logger.warning(f"Config ignored key: {key}")
                    continue

                try:
                    value = self._validate(key, value)
                except ValueError as e:
                    ignored.append(key)
                    logger.warning(f"Config rejected {key}: {e}")
                    continue

                old_value = getattr(self, key)
                setattr(self, key, value)
                updated.append(key)
                logger.info(f"Config updated: {key} = {value} (was {old_value})")

                if key == "log_level":
                    logging.getLogger().setLevel(value)

            self._update_count += 1

        return {"updated": updated, "ignored": ignored, "update_count": self._update_count}

    def get_llm_timeout(self) -> Dict[str, float]:
        """Get provider timeout settings (total and connect)."""
        return {"total": self.llm_timeout, "connect": self.llm_connect_timeout}

    def to_dict(self) -> Dict[str, Any]:
        """Export current config as dict (excludes internal fields and credentials)."""
        result = {}
        for field_info in fields(self):
            if field_info.name.startswith("_") or field_info.name in _PROTECTED:
                continue
            result[field_info.name] = getattr(self, field_info.name)
        return result

    def reset_to_defaults(self) -> Dict[str, Any]:
        """Reset all values to environment defaults."""
        defaults = RuntimeConfig()
        changes = {}

        with self._lock:
            for key in self.to_dict().keys():
                old_value = getattr(self, key)
                new_value = getattr(defaults, key)
                if old_value != new_value:
                    setattr(self, key, new_value)
                    changes[key] = {"old": old_value, "new": new_value}
                    logger.info(f"Config reset: {key} = {new_value}")

            self._update_count += 1

        return {"reset": True, "changes": changes, "update_count": self._update_count}


# Singleton instance
runtime_config = RuntimeConfig()


def get_config() -> RuntimeConfig:
    """Get the singleton config instance."""
    return runtime_config
