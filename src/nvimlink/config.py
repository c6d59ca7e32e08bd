"""Configuration loading and persistence for nvimlink."""

import json
import logging
import os
import time
from pathlib import Path

from pydantic import ValidationError

from nvimlink.models import NvimLinkConfig

log = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".nvimlink"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Injected into the terminal's environment so plugins inside Neovim can talk
# back to the notes host.
API_KEY_ENV = "OBSIDIAN_REST_API_KEY"

ENV_OVERRIDES = {
    "NVIMLINK_NVIM_PATH": "nvim_path",
    "NVIMLINK_TERMINAL": "terminal",
    "NVIMLINK_LISTEN_ON": "listen_on",
    "NVIMLINK_VAULT": "vault_path",
    API_KEY_ENV: "api_key",
}


def _read_config_file(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        log.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(payload, dict):
        log.warning("ignoring config %s: expected a JSON object", path)
        return {}
    return payload


def _env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for env_key, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_key, "").strip()
        if value:
            overrides[field_name] = value
    return overrides


def load_config(path: Path | None = None, apply_env: bool = True) -> NvimLinkConfig:
    """Load saved configuration, then apply environment overrides."""
    config_path = path or CONFIG_FILE
    data = _read_config_file(config_path)
    try:
        saved = NvimLinkConfig.model_validate(data)
    except ValidationError as e:
        log.warning("ignoring invalid config %s: %s", config_path, e)
        saved = NvimLinkConfig()

    overrides = _env_overrides() if apply_env else {}
    if not overrides:
        return saved
    log.debug("environment overrides: %s", sorted(overrides))
    try:
        return NvimLinkConfig.model_validate({**saved.model_dump(), **overrides})
    except ValidationError as e:
        log.warning("ignoring invalid environment overrides: %s", e)
        return saved


def save_config(config: NvimLinkConfig, path: Path | None = None) -> Path:
    """Atomically write configuration with owner-only permissions."""
    config_path = path or CONFIG_FILE
    os.makedirs(config_path.parent, mode=0o700, exist_ok=True)
    temp_file = config_path.with_name(
        f".{config_path.name}.{os.getpid()}.{time.time_ns()}.tmp"
    )
    fd = os.open(temp_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_file, config_path)
    log.debug("saved config to %s", config_path)
    return config_path
