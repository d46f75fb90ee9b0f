"""Runtime configuration for the chat backends."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_EDGE_FUNCTION = "openai-chat"
DEFAULT_BACKEND_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"

# Environment variable -> settings field
_ENV_OVERRIDES = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_ANON_KEY": "supabase_anon_key",
    "SUPABASE_EDGE_FUNCTION": "edge_function",
    "CHAT_BACKEND_MODEL": "backend_model",
    "GEMINI_API_KEY": "gemini_api_key",
    "GEMINI_MODEL": "gemini_model",
    "CHAT_REQUEST_TIMEOUT": "request_timeout",
    "CHAT_DEBUG": "debug",
}


class SettingsError(ValueError):
    """Raised when a settings file cannot be interpreted."""


@dataclass(frozen=True)
class ChatSettings:
    supabase_url: str = ""
    supabase_anon_key: str = ""
    edge_function: str = DEFAULT_EDGE_FUNCTION
    backend_model: str = DEFAULT_BACKEND_MODEL
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    request_timeout: float = 60.0
    history_limit: int = 10
    debug: bool = False

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    def __repr__(self) -> str:
        # Keys stay out of logs and tracebacks.
        return (
            f"ChatSettings(supabase_url={self.supabase_url!r}, edge_function={self.edge_function!r}, "
            f"backend_model={self.backend_model!r}, gemini_model={self.gemini_model!r}, "
            f"supabase_configured={self.supabase_configured}, gemini_configured={self.gemini_configured})"
        )


def _coerce_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _coerce(name: str, raw: Any) -> Any:
    if name == "debug":
        return _coerce_bool(raw)
    if name == "request_timeout":
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"request_timeout must be numeric, got {raw!r}") from exc
    if name == "history_limit":
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"{name} must be an integer, got {raw!r}") from exc
    return "" if raw is None else str(raw).strip()


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Settings file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping.")
    # Allow the values to sit under a top-level ``chat:`` key.
    nested = data.get("chat")
    return dict(nested) if isinstance(nested, dict) else data


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ChatSettings:
    """Build settings from defaults, an optional YAML file and the environment."""

    known = {item.name for item in fields(ChatSettings)}
    values: Dict[str, Any] = {}

    if config_path:
        path = Path(config_path).expanduser()
        if path.exists():
            for key, raw in _read_yaml(path).items():
                if key in known:
                    values[key] = _coerce(key, raw)

    env = os.environ if environ is None else environ
    for env_name, field_name in _ENV_OVERRIDES.items():
        raw = env.get(env_name)
        if raw is not None and raw != "":
            values[field_name] = _coerce(field_name, raw)

    return ChatSettings(**values)


__all__ = ["ChatSettings", "SettingsError", "load_settings"]
