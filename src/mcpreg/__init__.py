"""mcpreg — register MCP servers with Claude Code without leaking their secrets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mcpreg")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from mcpreg.models import AuthMode, Scope, ServerSpec, Transport

__all__ = ["AuthMode", "Scope", "ServerSpec", "Transport", "__version__"]
