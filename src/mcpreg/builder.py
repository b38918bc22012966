"""Argument vectors for the collaborator's ``mcp add`` command.

The collaborator's parser binds its variadic flags (``-e``, ``--header``)
to whatever token follows, positionals included. Emission order is
therefore fixed:

    mcp add --transport T --scope S [oauth flags] NAME [-e K=V]* (URL | -- CMD...) [--header H]*

``-e`` goes after NAME so it cannot swallow the name, and before ``--`` so
the collaborator does not read it as a subprocess argument. ``--header``
goes last so it cannot swallow NAME or URL.
"""

from __future__ import annotations

from mcpreg.errors import UsageError
from mcpreg.models import ServerSpec
from mcpreg.parser import COMMAND_SENTINEL, FLAG_CLIENT_SECRET, FLAG_HEADER

ArgumentVector = tuple[str, ...]


def _preamble(spec: ServerSpec) -> list[str]:
    args = ["mcp", "add", "--transport", spec.transport, "--scope", spec.scope]
    if spec.client_id:
        args += ["--client-id", spec.client_id]
    if spec.client_secret:
        args += [FLAG_CLIENT_SECRET, spec.client_secret]
    return args


def check_endpoint(spec: ServerSpec) -> None:
    """Exactly one of URL or command is set, and which one follows the transport."""
    if spec.is_network:
        if not spec.url:
            raise UsageError("URL required for http/sse transport")
        return
    if spec.url:
        raise UsageError("URL not allowed for stdio transport (use --transport http or sse)")
    if not spec.command_args:
        raise UsageError("command required for stdio transport (use -- <command> [args...])")


def _headers(spec: ServerSpec) -> list[str]:
    args: list[str] = []
    for header in spec.headers:
        args += [FLAG_HEADER, header]
    return args


def build_add_args(spec: ServerSpec) -> ArgumentVector:
    """Build the vector for ``mcp add`` from a fully-resolved spec."""
    check_endpoint(spec)
    args = _preamble(spec)
    args.append(spec.name)
    for key, value in spec.env_vars:
        args += ["-e", f"{key}={value}"]
    if spec.is_network:
        args.append(spec.url)
    else:
        args.append(COMMAND_SENTINEL)
        args += spec.command_args
    args += _headers(spec)
    return tuple(args)


def build_remote_args(spec: ServerSpec) -> ArgumentVector:
    """Build the vector for ``mcp remote``: NAME and URL, then headers."""
    check_endpoint(spec)
    args = _preamble(spec)
    args += [spec.name, spec.url]
    args += _headers(spec)
    return tuple(args)
