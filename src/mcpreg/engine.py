"""The ``add``, ``remote`` and ``list`` flows.

Each registration runs Parsed -> SecretsResolved -> Built -> Invoked and
stops at the first failure. Secret prompting happens before the vector is
built, so an aborted or empty secret never spawns the collaborator.
"""

from __future__ import annotations

import json
import logging
import shlex
from collections.abc import Callable, Sequence
from pathlib import Path

import click

from mcpreg.builder import ArgumentVector, build_add_args, build_remote_args, check_endpoint
from mcpreg.config import Settings, load_settings
from mcpreg.errors import ExternalExitError
from mcpreg.invoker import capture_collaborator, run_collaborator
from mcpreg.manifest import ManifestError, read_manifest
from mcpreg.models import ServerSpec
from mcpreg.parser import parse_add_args, parse_remote_args
from mcpreg.prompt import Prompter, resolve_secrets
from mcpreg.redact import mask_sensitive_args

logger = logging.getLogger(__name__)

Runner = Callable[[ArgumentVector, str], int]


def _echo_preview(settings: Settings, argv: ArgumentVector) -> None:
    safe = mask_sensitive_args(argv)
    click.echo(f"  > {settings.collaborator} {shlex.join(safe)}\n")


def _invoke(settings: Settings, argv: ArgumentVector, runner: Runner | None, action: str) -> None:
    runner = runner or run_collaborator
    code = runner(argv, settings.collaborator)
    if code != 0:
        logger.warning("Collaborator reported failure", extra={"command": action, "exit_code": code})
        raise ExternalExitError(code, action)


# ---------------------------------------------------------------------------
# mcp add
# ---------------------------------------------------------------------------


def _print_add_success(spec: ServerSpec) -> None:
    click.echo("\n" + click.style(f"MCP server '{spec.name}' added successfully.", fg="green"))
    if spec.auth_mode == "oauth_client_credentials":
        click.echo("Next: Run '/mcp' in Claude Code to complete OAuth authentication.")
    else:
        click.echo("Run '/mcp' in Claude Code to verify the connection.")
    if spec.scope == "project" and spec.env_vars:
        click.echo("\n  NOTE: Server added to .mcp.json (project scope).")
        click.echo("  API keys are in your LOCAL Claude config, not in .mcp.json.")
        click.echo("  Team members must set these env vars in their own environment:")
        for key in spec.env_keys():
            click.echo(f"    export {key}=<value>")


def add_server(
    tokens: Sequence[str],
    *,
    settings: Settings | None = None,
    prompter: Prompter | None = None,
    runner: Runner | None = None,
) -> ServerSpec:
    """Register a local or remote server from raw ``mcp add`` tokens."""
    settings = settings or load_settings()
    spec = parse_add_args(tokens)
    check_endpoint(spec)
    resolve_secrets(spec, prompter)
    argv = build_add_args(spec)

    click.echo(f"Adding MCP server '{spec.name}' ({spec.transport}, scope: {spec.scope})...")
    _echo_preview(settings, argv)
    _invoke(settings, argv, runner, "add MCP server")

    logger.info(
        "Server added",
        extra={"command": "add", "args_data": {"name": spec.name, "scope": spec.scope, "auth": spec.auth_mode}},
    )
    _print_add_success(spec)
    return spec


# ---------------------------------------------------------------------------
# mcp remote
# ---------------------------------------------------------------------------


def _auth_summary(spec: ServerSpec) -> str:
    if spec.auth_mode == "oauth_client_credentials":
        return "OAuth 2.0"
    if spec.auth_mode == "bearer_prompt" or spec.has_auth_header():
        return "Bearer token"
    return "OAuth (via /mcp in session)"


def _print_remote_status(spec: ServerSpec) -> None:
    click.echo(f"\nConnecting to remote MCP server '{spec.name}'...")
    click.echo(f"  URL:       {spec.url}")
    click.echo(f"  Transport: {spec.transport}")
    click.echo(f"  Scope:     {spec.scope}")
    click.echo(f"  Auth:      {_auth_summary(spec)}")
    click.echo()


def remote_server(
    url: str,
    tokens: Sequence[str] = (),
    *,
    settings: Settings | None = None,
    prompter: Prompter | None = None,
    runner: Runner | None = None,
) -> ServerSpec:
    """Register a remote server or gateway at *url*."""
    settings = settings or load_settings()
    spec = parse_remote_args(url, tokens)
    check_endpoint(spec)
    resolve_secrets(spec, prompter)
    argv = build_remote_args(spec)

    _print_remote_status(spec)
    _invoke(settings, argv, runner, "connect")

    logger.info(
        "Remote server connected",
        extra={"command": "remote", "args_data": {"name": spec.name, "auth": spec.auth_mode}},
    )
    click.echo("\n" + click.style(f"Remote MCP server '{spec.name}' connected.", fg="green"))
    if spec.auth_mode != "bearer_prompt":
        click.echo(f"Next: Run '/mcp' in Claude Code -> select '{spec.name}' -> Authenticate")
    return spec


# ---------------------------------------------------------------------------
# mcp list
# ---------------------------------------------------------------------------

QUICK_ADD_COMMANDS = (
    ("Local server (no auth):", "mcpreg mcp add <name> -- <cmd>"),
    ("Local server (API key):", "mcpreg mcp add <name> --api-key API_KEY -- <cmd>"),
    ("Remote server (OAuth):", "mcpreg mcp remote <url>"),
    ("Remote server (Bearer):", "mcpreg mcp remote <url> --bearer"),
    ("Remote server (client creds):", "mcpreg mcp remote <url> --oauth --client-id <id> --client-secret"),
)


def _section(title: str) -> None:
    click.echo("\n" + click.style(f"--- {title} ---", bold=True))


def list_servers(*, settings: Settings | None = None, cwd: Path | None = None, as_json: bool = False) -> bool:
    """Print configured servers. Returns False if the manifest was unreadable."""
    settings = settings or load_settings()
    manifest_path = (cwd or Path.cwd()) / settings.manifest

    if as_json:
        try:
            entries = read_manifest(manifest_path) or []
        except ManifestError as e:
            click.echo(json.dumps({"error": str(e)}))
            return False
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return True

    click.echo(click.style("=== Configured MCP Servers ===", bold=True))
    click.echo()

    collaborator_out = capture_collaborator(("mcp", "list"), settings.collaborator)
    if collaborator_out:
        click.echo(collaborator_out)

    ok = True
    try:
        entries = read_manifest(manifest_path)
    except ManifestError as e:
        logger.warning("Unreadable manifest", extra={"command": "list", "error": str(e)})
        _section(f"Project {settings.manifest}")
        click.echo("  " + click.style(f"Could not parse {settings.manifest}", fg="red"))
        ok = False
    else:
        if entries is not None:
            _section(f"Project {settings.manifest}")
            for entry in entries:
                click.echo(f"  {entry.describe()}")

    _section("Quick Add Commands")
    width = max(len(label) for label, _ in QUICK_ADD_COMMANDS) + 2
    for label, command in QUICK_ADD_COMMANDS:
        click.echo(f"  {label:<{width}}{command}")
    click.echo()
    return ok
