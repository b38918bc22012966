"""Read-only view of the project's ``.mcp.json``.

The manifest belongs to the collaborator. This module parses it for display
and never writes it back.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """The manifest exists but cannot be parsed."""


@dataclass
class ManifestEntry:
    name: str
    type: str = ""
    url: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    @property
    def is_remote(self) -> bool:
        return self.type == "http" or bool(self.url)

    def env_keys(self) -> list[str]:
        """Names of env vars with a non-empty value."""
        return [k for k, v in self.env.items() if v]

    def describe(self) -> str:
        env_keys = self.env_keys()
        env_note = f" (env: {', '.join(env_keys)})" if env_keys else ""
        if self.is_remote:
            return f"{self.name}: {self.url or self.type} (remote){env_note}"
        return f"{self.name}: {self.command} {' '.join(self.args)} (local){env_note}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "remote": self.is_remote,
            "type": self.type,
            "url": self.url,
            "command": self.command,
            "args": self.args,
            "env_keys": self.env_keys(),
        }


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _entry_from_raw(name: str, raw: object) -> ManifestEntry | None:
    if not isinstance(raw, dict):
        logger.debug("Skipping manifest entry %s: not an object", name)
        return None
    args = raw.get("args")
    env = raw.get("env")
    return ManifestEntry(
        name=name,
        type=_str(raw.get("type")),
        url=_str(raw.get("url")),
        command=_str(raw.get("command")),
        args=[str(a) for a in args] if isinstance(args, list) else [],
        env={str(k): _str(v) for k, v in env.items()} if isinstance(env, dict) else {},
    )


def read_manifest(path: Path) -> list[ManifestEntry] | None:
    """Parse *path* into entries in file order.

    Returns None if the file does not exist and raises ManifestError if it
    is not valid JSON or not an object.
    """
    if not path.exists():
        return None
    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Could not parse {path.name}: {e}") from e
    if not isinstance(raw, dict):
        raise ManifestError(f"Could not parse {path.name}: not a JSON object")
    servers = raw.get("mcpServers") or {}
    if not isinstance(servers, dict):
        raise ManifestError(f"Could not parse {path.name}: mcpServers is not an object")

    entries: list[ManifestEntry] = []
    for name, cfg in servers.items():
        entry = _entry_from_raw(name, cfg)
        if entry is not None:
            entries.append(entry)
    return entries
