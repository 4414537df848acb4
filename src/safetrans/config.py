import json
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import EngineConfig, ModelConfig

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4"


class ConfigError(Exception):
    """Raised when no usable engine configuration can be built."""


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> EngineConfig:
    """
    Build an ``EngineConfig`` from an optional JSON file and the environment.

    The file holds ``{"translator": {...}, "engine": {...}}``. Translator keys
    missing from the file fall back to OPENAI_API_KEY, OPENAI_BASE_URL and
    SAFETRANS_MODEL. ``overrides`` replace engine keys (used by the CLI).
    """
    config_data: Dict[str, Any] = {}
    if path:
        if not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Error loading config file {path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

    translator_data = dict(config_data.get("translator") or {})
    translator_data.setdefault("api_key", os.getenv("OPENAI_API_KEY", ""))
    translator_data.setdefault("base_url", os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL))
    translator_data.setdefault("model", os.getenv("SAFETRANS_MODEL", DEFAULT_MODEL))
    if not translator_data["api_key"]:
        raise ConfigError("No API key configured. Provide --config or set OPENAI_API_KEY.")

    engine_data = dict(config_data.get("engine") or {})
    engine_data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return EngineConfig(translator_config=ModelConfig(**translator_data), **engine_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
