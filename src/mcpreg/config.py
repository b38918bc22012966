"""Runtime settings.

Resolution order: built-in defaults, then ``~/.mcpreg/config.json`` (or the
file named by ``MCPREG_CONFIG``), then ``MCPREG_*`` environment variables.
Credentials are never read from or written to this file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)

MCPREG_DIR_NAME = ".mcpreg"
CONFIG_FILENAME = "config.json"
DEFAULT_COLLABORATOR = "claude"
DEFAULT_MANIFEST = ".mcp.json"

ENV_CONFIG = "MCPREG_CONFIG"
ENV_COLLABORATOR = "MCPREG_COLLABORATOR"
ENV_LOG_DIR = "MCPREG_LOG_DIR"
ENV_MANIFEST = "MCPREG_MANIFEST"


class ConfigFile(TypedDict, total=False):
    """Shape of ~/.mcpreg/config.json."""

    collaborator: str
    log_dir: str
    manifest: str


@dataclass(frozen=True)
class Settings:
    collaborator: str = DEFAULT_COLLABORATOR
    log_dir: Path = Path.home() / MCPREG_DIR_NAME
    manifest: str = DEFAULT_MANIFEST


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return Path.home() / MCPREG_DIR_NAME / CONFIG_FILENAME


def read_config_file(config_path: Path) -> ConfigFile:
    """Read the JSON config file. Returns {} if missing or corrupt."""
    if not config_path.exists():
        return {}
    try:
        raw = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring %s: not a JSON object", config_path)
        return {}
    result = ConfigFile()
    for key in ("collaborator", "log_dir", "manifest"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            result[key] = value.strip()  # type: ignore[literal-required]
        elif value is not None:
            logger.warning("Ignoring non-string '%s' in %s", key, config_path)
    return result


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve Settings from defaults, the config file, and the environment."""
    env = os.environ if environ is None else environ
    file_cfg = read_config_file(config_path or default_config_path(env))

    collaborator = env.get(ENV_COLLABORATOR) or file_cfg.get("collaborator") or DEFAULT_COLLABORATOR
    log_dir = env.get(ENV_LOG_DIR) or file_cfg.get("log_dir")
    manifest = env.get(ENV_MANIFEST) or file_cfg.get("manifest") or DEFAULT_MANIFEST

    return Settings(
        collaborator=collaborator,
        log_dir=Path(log_dir).expanduser() if log_dir else Path.home() / MCPREG_DIR_NAME,
        manifest=manifest,
    )
