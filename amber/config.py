from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/amber/config.json").expanduser()
DEFAULT_BASE_DIR = "~/.amber"

CONFIG_ENV_OVERRIDES = {
    "base_dir": "AMBER_BASE_DIR",
    "agents_home": "AMBER_AGENTS_HOME",
    "search_limit": "AMBER_SEARCH_LIMIT",
    "preview_limit": "AMBER_PREVIEW_LIMIT",
}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("AMBER_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class AmberConfig:
    base_dir: str = DEFAULT_BASE_DIR
    # Directory holding the agents' dot-folders (.claude, .codex, ...).
    # None means the current user's home.
    agents_home: str | None = None
    search_limit: int = 50
    preview_limit: int = 50

    def resolved_base_dir(self) -> Path:
        return resolve_base_dir(self.base_dir)

    def resolved_agents_home(self) -> Path:
        if self.agents_home:
            return Path(self.agents_home).expanduser().resolve()
        return Path.home()


def resolve_base_dir(base_dir: str | Path | None = None) -> Path:
    if base_dir is None or str(base_dir) == DEFAULT_BASE_DIR:
        return Path.home() / ".amber"
    return Path(base_dir).expanduser().resolve()


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def load_config(path: Path | None = None) -> AmberConfig:
    cfg = AmberConfig()
    try:
        data = read_config_file(path)
    except ValueError as exc:
        warnings.warn(f"Ignoring config file: {exc}", RuntimeWarning, stacklevel=2)
        data = {}
    cfg = _apply_dict(cfg, data)
    return _apply_dict(cfg, get_env_overrides())


def _apply_dict(cfg: AmberConfig, data: dict[str, Any]) -> AmberConfig:
    for key, value in data.items():
        if key not in CONFIG_ENV_OVERRIDES:
            continue
        if key in {"search_limit", "preview_limit"}:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if value is None and key == "base_dir":
            continue
        setattr(cfg, key, value)
    return cfg
