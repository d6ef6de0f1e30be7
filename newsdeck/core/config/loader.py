"""
Configuration loader.

Loads YAML config files and provides unified access.
Supports:
- Base file plus a local override file, deep-merged
- Environment variable substitution (${VAR} and ${VAR:-default})
- Config directory override via NEWSDECK_CONFIG_DIR
"""

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent.parent.parent.parent / "config"
CONFIG_FILES = ["newsdeck.yaml", "newsdeck.local.yaml"]

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute environment variables in config."""
    if isinstance(obj, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj
        )

    elif isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}

    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]

    return obj


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a single YAML file."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return _substitute_env_vars(data)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries. Override takes precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def resolve_config_dir(config_dir: str | None = None) -> Path:
    """Explicit argument, then NEWSDECK_CONFIG_DIR, then ./config."""
    if config_dir:
        return Path(config_dir).expanduser()
    env_dir = os.environ.get("NEWSDECK_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return CONFIG_DIR


@lru_cache(maxsize=1)
def get_config(config_dir: str | None = None) -> dict[str, Any]:
    """Load and merge all config files."""
    base_dir = resolve_config_dir(config_dir)

    config: dict[str, Any] = {}

    for filename in CONFIG_FILES:
        file_path = base_dir / filename
        if file_path.exists():
            config = deep_merge(config, load_yaml(file_path))
            logger.debug(f"Loaded config: {filename}")

    if not config:
        logger.info(f"No config files in {base_dir}, using defaults")

    return config


def reload_config(config_dir: str | None = None) -> dict[str, Any]:
    """Force reload config (clears cache)."""
    get_config.cache_clear()
    return get_config(config_dir)


def get_section(name: str, config_dir: str | None = None) -> dict[str, Any]:
    """Get one top-level config section (e.g. "reddit")."""
    section = get_config(config_dir).get(name) or {}
    return section if isinstance(section, dict) else {}
