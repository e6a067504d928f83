# File: config.py
# Manages application configuration using environment variables loaded from .env.

import logging
import os
from copy import deepcopy
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 8006,
        "enable_performance_monitor": False,
    },
    "phonemizer": {
        "language": "en-us",
        "preserve_punctuation": True,
        "use_bundled_espeak": True,
        "load_on_startup": True,
    },
    "normalizer": {
        "strip_stress": True,
    },
    "ui": {
        "title": "Phoneme Normalizer Server",
    },
}

ENV_KEY_MAP: Dict[str, str] = {
    "server.host": "PHONEME_SERVER_HOST",
    "server.port": "PHONEME_SERVER_PORT",
    "server.enable_performance_monitor": "PHONEME_SERVER_ENABLE_PERFORMANCE_MONITOR",
    "phonemizer.language": "PHONEME_LANGUAGE",
    "phonemizer.preserve_punctuation": "PHONEME_PRESERVE_PUNCTUATION",
    "phonemizer.use_bundled_espeak": "PHONEME_USE_BUNDLED_ESPEAK",
    "phonemizer.load_on_startup": "PHONEME_LOAD_ON_STARTUP",
    "normalizer.strip_stress": "PHONEME_STRIP_STRESS",
    "ui.title": "PHONEME_UI_TITLE",
}


def _set_nested_value(d: Dict[str, Any], keys: list[str], value: Any):
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value


def _get_nested_value(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
    for key in keys:
        if isinstance(d, dict) and key in d:
            d = d[key]
        else:
            return default
    return d


def _parse_bool(raw_value: Any, default: bool = False) -> bool:
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, str):
        return raw_value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return bool(raw_value)


class EnvConfigManager:
    """Loads read-only runtime configuration from .env and process environment variables."""

    def __init__(self, env_file_path: Optional[Path] = None):
        self._lock = Lock()
        self._env_file_path = env_file_path or ENV_FILE_PATH
        self.config: Dict[str, Any] = {}
        self.load_config()

    def _parse_env_file(self) -> Dict[str, str]:
        if not self._env_file_path.exists():
            return {}

        parsed: Dict[str, str] = {}
        with open(self._env_file_path, "r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue

                if line.startswith("export "):
                    line = line[len("export ") :].strip()

                if "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
                    value = value[1:-1]

                parsed[key] = value

        return parsed

    def _coerce_env_value(self, raw_value: str, default_value: Any) -> Any:
        if isinstance(default_value, bool):
            return _parse_bool(raw_value, default=default_value)
        if isinstance(default_value, int) and not isinstance(default_value, bool):
            try:
                return int(str(raw_value).strip())
            except (ValueError, TypeError):
                logger.warning("Invalid integer env value '%s'. Falling back to default '%s'.", raw_value, default_value)
                return default_value
        return str(raw_value)

    def _resolve_language(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        language = str(_get_nested_value(config_data, ["phonemizer", "language"], "") or "").strip().lower()
        if not language:
            default_language = DEFAULT_CONFIG["phonemizer"]["language"]
            logger.warning(
                "Empty PHONEME_LANGUAGE. Using default language '%s' instead.",
                default_language,
            )
            language = default_language
        _set_nested_value(config_data, ["phonemizer", "language"], language)
        logger.info("Phonemizer language resolved to: %s", language)
        return config_data

    def _load_from_environment(self) -> Dict[str, Any]:
        base_config = deepcopy(DEFAULT_CONFIG)
        env_file_values = self._parse_env_file()

        for key_path, env_key in ENV_KEY_MAP.items():
            raw_value = os.environ.get(env_key, env_file_values.get(env_key))
            if raw_value is None:
                continue

            default_value = _get_nested_value(DEFAULT_CONFIG, key_path.split("."))
            coerced_value = self._coerce_env_value(raw_value, default_value)
            _set_nested_value(base_config, key_path.split("."), coerced_value)

        return self._resolve_language(base_config)

    def load_config(self) -> Dict[str, Any]:
        with self._lock:
            self.config = self._load_from_environment()
            return deepcopy(self.config)

    def get(self, key_path: str, default: Any = None) -> Any:
        keys = key_path.split(".")
        with self._lock:
            value = _get_nested_value(self.config, keys, default)
        return deepcopy(value) if isinstance(value, (dict, list)) else value

    def get_string(self, key_path: str, default: Optional[str] = None) -> str:
        value = self.get(key_path, default)
        if value is None:
            return default if default is not None else ""
        return str(value)

    def get_int(self, key_path: str, default: Optional[int] = None) -> int:
        value = self.get(key_path, default)
        if value is None:
            return default if default is not None else 0
        try:
            return int(value)
        except (ValueError, TypeError):
            return default if isinstance(default, int) else 0

    def get_bool(self, key_path: str, default: Optional[bool] = None) -> bool:
        value = self.get(key_path, default)
        return _parse_bool(value, default if default is not None else False)

    def get_all(self) -> Dict[str, Any]:
        with self._lock:
            return deepcopy(self.config)


config_manager = EnvConfigManager()


def _get_default_from_structure(key_path: str) -> Any:
    return _get_nested_value(DEFAULT_CONFIG, key_path.split("."))


def get_host() -> str:
    return config_manager.get_string("server.host", _get_default_from_structure("server.host"))


def get_port() -> int:
    return config_manager.get_int("server.port", _get_default_from_structure("server.port"))


def get_phonemizer_language() -> str:
    return config_manager.get_string(
        "phonemizer.language", _get_default_from_structure("phonemizer.language")
    )


def get_preserve_punctuation() -> bool:
    return config_manager.get_bool(
        "phonemizer.preserve_punctuation",
        _get_default_from_structure("phonemizer.preserve_punctuation"),
    )


def get_use_bundled_espeak() -> bool:
    return config_manager.get_bool(
        "phonemizer.use_bundled_espeak",
        _get_default_from_structure("phonemizer.use_bundled_espeak"),
    )


def get_load_on_startup() -> bool:
    return config_manager.get_bool(
        "phonemizer.load_on_startup",
        _get_default_from_structure("phonemizer.load_on_startup"),
    )


def get_strip_stress() -> bool:
    return config_manager.get_bool(
        "normalizer.strip_stress", _get_default_from_structure("normalizer.strip_stress")
    )


def get_ui_title() -> str:
    return config_manager.get_string("ui.title", _get_default_from_structure("ui.title"))


# --- End File: config.py ---
