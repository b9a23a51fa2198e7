"""
Configuration loading -- defaults, YAML file, environment, CLI overrides.

Later sources win:
    1. SyncConfig defaults
    2. YAML file ($VAULTSYNC_CONFIG or ~/.config/vaultsync/config.yaml)
    3. VAULTSYNC_* environment variables
    4. Explicit overrides (CLI options)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from . import CONFIG_PATH
from .models import SyncConfig

logger = logging.getLogger("vaultsync.config")

ENV_OVERRIDES = {
    "VAULTSYNC_VAULT_NAME": "vault_name",
    "VAULTSYNC_ARCHIVE_BASE": "archive_base",
    "VAULTSYNC_REMOTE_NAME": "remote_name",
    "VAULTSYNC_REMOTE_PATH": "remote_path",
}


def _load_file(config_file: Path) -> dict[str, Any]:
    """Read the YAML config file, ignoring it if missing or broken."""
    if not config_file.exists():
        return {}
    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to read config %s: %s", config_file, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: not a mapping", config_file)
        return {}
    return data


def load_config(
    config_file: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> SyncConfig:
    """Build the effective SyncConfig.

    Args:
        config_file: YAML file to read. Defaults to CONFIG_PATH.
        overrides: Values that take precedence over every other source.
            None values are skipped.

    Returns:
        The merged SyncConfig.

    Raises:
        ValidationError: If an environment variable or override holds an
            invalid value. Invalid file values are only logged and skipped.
    """
    path = (config_file or Path(CONFIG_PATH)).expanduser()
    data = _load_file(path)
    try:
        SyncConfig(**data)
    except ValidationError as exc:
        logger.warning("Invalid values in %s, ignoring file: %s", path, exc)
        data = {}

    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[field_name] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    return SyncConfig(**data)


def save_config(config: SyncConfig, config_file: Optional[Path] = None) -> Path:
    """Persist a SyncConfig as YAML.

    Args:
        config: Configuration to write.
        config_file: Destination. Defaults to CONFIG_PATH.

    Returns:
        Path of the written file.
    """
    path = (config_file or Path(CONFIG_PATH)).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    path.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    return path
