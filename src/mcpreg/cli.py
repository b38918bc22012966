"""CLI for mcpreg.

Usage:
    mcpreg mcp add <name> [options] [-- <command> [args...]]   # Add a server
    mcpreg mcp remote <url> [options]                          # Connect a remote server
    mcpreg mcp list                                            # Show configured servers
"""

from __future__ import annotations

import sys
from typing import Any, NoReturn

import click

from mcpreg import __version__
from mcpreg.config import Settings, load_settings
from mcpreg.engine import add_server, list_servers, remote_server
from mcpreg.errors import McpregError, UsageError
from mcpreg.logging import enable_console_logging, setup_logging

ADD_HELP = """\
Usage: mcpreg mcp add <name> [options] [-- <command> [args...]]

Add a local or remote MCP server with secure API key handling.

Authentication Options:
  --api-key ENV_VAR_NAME        Prompt for API key (masked input), stored as env var
  --bearer                      Prompt for Bearer token (masked input), added as header
  --oauth                       Use OAuth 2.0 (authenticate via /mcp in Claude Code)
  --client-id <id>              OAuth client ID (for pre-registered apps)
  --client-secret               Prompt for OAuth client secret (masked input)

Other Options:
  --scope local|project|user    Where to save config (default: local)
  --transport stdio|http|sse    Transport type (default: auto-detected)
  --env KEY=VALUE               Set environment variable (repeatable, visible)
  --header 'Key: Value'         Add HTTP header (repeatable)

Security:
  - --api-key, --bearer and --client-secret use masked input
  - Secrets are stored in ~/.claude.json, NEVER in .mcp.json
  - With --scope project, only the server definition goes in .mcp.json
  - .mcp.json supports ${VAR} syntax for team members to supply their own keys

Examples:

  # Server requiring an API key (prompted securely)
  mcpreg mcp add brave-search --api-key BRAVE_API_KEY \\
    -- npx -y @modelcontextprotocol/server-brave-search

  # Remote server with OAuth (GitHub, Sentry, Notion, etc.)
  mcpreg mcp add github --transport http https://api.githubcopilot.com/mcp/

  # Remote server with Bearer token
  mcpreg mcp add my-api --bearer --transport http https://api.example.com/mcp

  # Share server with team (key stays local)
  mcpreg mcp add sentry --scope project --transport http https://mcp.sentry.dev/mcp
"""

REMOTE_HELP = """\
Usage: mcpreg mcp remote <url> [options]

Connect to a remote MCP server or gateway.

Authentication Options:
  --bearer                      Prompt for Bearer token (masked input)
  --oauth                       Use OAuth 2.0 flow
  --client-id <id>              OAuth client ID
  --client-secret               Prompt for OAuth client secret (masked input)

Other Options:
  --name <name>                 Server name (default: derived from URL)
  --scope local|project|user    Where to save (default: user)
  --header 'Key: Value'         Add custom HTTP header (repeatable)

Examples:

  # OAuth servers (authenticate via /mcp)
  mcpreg mcp remote https://mcp.sentry.dev/mcp --name sentry
  mcpreg mcp remote https://api.githubcopilot.com/mcp/ --name github

  # Bearer token (prompted securely)
  mcpreg mcp remote https://mcp.example.com --bearer

  # Pre-registered OAuth credentials
  mcpreg mcp remote https://mcp.example.com --oauth --client-id my-client-id --client-secret
"""


class PassthroughCommand(click.Command):
    """Command whose callback receives its tokens exactly as typed.

    ``add`` and ``remote`` have their own grammar (``--`` sentinel, greedy
    command capture) which click's option parser would rewrite.
    """

    def __init__(self, *args: Any, usage_text: str = "", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.usage_text = usage_text

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if len(args) == 1 and args[0] in ctx.help_option_names:
            click.echo(self.usage_text, nl=False)
            ctx.exit()
        ctx.params["tokens"] = tuple(args)
        ctx.args = []
        return []

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        formatter.write(self.usage_text)


def _settings(ctx: click.Context) -> Settings:
    obj = ctx.find_object(dict)
    if obj is not None and "settings" in obj:
        settings: Settings = obj["settings"]
        return settings
    return load_settings()


def _fail(err: McpregError, usage_text: str = "") -> NoReturn:
    if isinstance(err, UsageError) and usage_text:
        click.echo(usage_text)
    click.echo(click.style(f"Error: {err}", fg="red"), err=True)
    sys.exit(err.exit_code)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="mcpreg")
@click.option("--verbose", "-v", is_flag=True, help="Mirror debug logs to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """mcpreg — register MCP servers with Claude Code, secrets masked."""
    ctx.ensure_object(dict)
    settings = load_settings()
    ctx.obj["settings"] = settings
    if verbose:
        enable_console_logging()
    try:
        setup_logging(settings.log_dir)
    except OSError as e:
        click.echo(f"Warning: file logging disabled ({e})", err=True)


@cli.group()
def mcp() -> None:
    """Add, connect, and list MCP servers."""


@mcp.command("add", cls=PassthroughCommand, usage_text=ADD_HELP, short_help="Add a local or remote MCP server")
@click.pass_context
def add(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    try:
        add_server(tokens, settings=_settings(ctx))
    except McpregError as e:
        _fail(e, ADD_HELP if not tokens else "")


@mcp.command("remote", cls=PassthroughCommand, usage_text=REMOTE_HELP, short_help="Connect to a remote MCP server")
@click.pass_context
def remote(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    url, rest = (tokens[0], tokens[1:]) if tokens else ("", ())
    try:
        remote_server(url, rest, settings=_settings(ctx))
    except McpregError as e:
        _fail(e, REMOTE_HELP if not url else "")


@mcp.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output project servers as JSON")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List configured MCP servers."""
    ok = list_servers(settings=_settings(ctx), as_json=as_json)
    if as_json and not ok:
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
