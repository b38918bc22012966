"""Token parsing for ``mcp add`` and ``mcp remote``.

The grammar is deliberately permissive. Without a ``--`` sentinel, the first
token that is neither a known flag nor a URL starts greedy command capture,
so a misspelled flag before the URL becomes part of the subprocess command
rather than an error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import urlsplit

from mcpreg.errors import UsageError
from mcpreg.models import VALID_SCOPES, VALID_TRANSPORTS, Scope, ServerSpec, Transport

logger = logging.getLogger(__name__)

FLAG_HEADER = "--header"
FLAG_CLIENT_SECRET = "--client-secret"
COMMAND_SENTINEL = "--"
FALLBACK_SERVER_NAME = "remote-gateway"

_URL_PREFIXES = ("http://", "https://")


def _is_url(token: str) -> bool:
    return token.startswith(_URL_PREFIXES)


def _take_value(tokens: Sequence[str], idx: int) -> tuple[str | None, int]:
    """Return the value following a flag at *idx* and the index it sits at.

    A flag at the end of input has no value; the caller ignores it.
    """
    idx += 1
    if idx < len(tokens):
        return tokens[idx], idx
    return None, idx


def _check_scope(value: str) -> Scope:
    if value not in VALID_SCOPES:
        raise UsageError(f"invalid scope '{value}' (expected one of: local, project, user)")
    return value  # type: ignore[return-value]


def _check_transport(value: str) -> Transport:
    if value not in VALID_TRANSPORTS:
        raise UsageError(f"invalid transport '{value}' (expected one of: stdio, http, sse)")
    return value  # type: ignore[return-value]


def _parse_auth_flag(spec: ServerSpec, tokens: Sequence[str], idx: int) -> int | None:
    """Consume an auth flag shared by ``add`` and ``remote``.

    Returns the index of the last consumed token, or None if tokens[idx] is
    not an auth flag.
    """
    token = tokens[idx]
    if token == FLAG_HEADER:
        value, idx = _take_value(tokens, idx)
        if value is not None:
            spec.headers.append(value)
        return idx
    if token == "--bearer":
        spec.prompt_bearer = True
        return idx
    if token == "--oauth":
        spec.use_oauth = True
        return idx
    if token == "--client-id":
        value, idx = _take_value(tokens, idx)
        if value is not None:
            spec.client_id = value
        return idx
    if token == FLAG_CLIENT_SECRET:
        spec.prompt_client_secret = True
        return idx
    return None


def _parse_env_pair(spec: ServerSpec, pair: str) -> None:
    key, sep, value = pair.partition("=")
    if not sep or not key:
        logger.warning("Ignoring --env value without KEY=VALUE form")
        return
    spec.set_env(key, value)


# ---------------------------------------------------------------------------
# mcp add
# ---------------------------------------------------------------------------


def parse_add_args(tokens: Sequence[str]) -> ServerSpec:
    """Parse ``<name> [flags...] (-- CMD... | URL)`` into a ServerSpec."""
    if not tokens:
        raise UsageError("server name is required")

    spec = ServerSpec(name=tokens[0], scope="local")
    transport: str = ""

    idx = 1
    while idx < len(tokens):
        token = tokens[idx]
        if token == COMMAND_SENTINEL:
            spec.command_args = list(tokens[idx + 1 :])
            break

        if token == "--scope":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                spec.scope = _check_scope(value)
        elif token == "--transport":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                transport = _check_transport(value)
        elif token == "--env":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                _parse_env_pair(spec, value)
        elif token == "--api-key":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                spec.api_key_env = value
        else:
            consumed = _parse_auth_flag(spec, tokens, idx)
            if consumed is not None:
                idx = consumed
            elif _is_url(token):
                if spec.url:
                    logger.warning("Ignoring extra URL argument; keeping the first one")
                else:
                    spec.url = token
            else:
                spec.command_args = list(tokens[idx:])
                break
        idx += 1

    if transport:
        spec.transport = transport  # type: ignore[assignment]
    else:
        spec.transport = "http" if spec.url else "stdio"

    logger.debug(
        "Parsed add request",
        extra={"command": "add", "args_data": {"name": spec.name, "transport": spec.transport, "scope": spec.scope}},
    )
    return spec


# ---------------------------------------------------------------------------
# mcp remote
# ---------------------------------------------------------------------------


def parse_remote_args(url: str, tokens: Sequence[str] = ()) -> ServerSpec:
    """Parse ``remote <url> [flags...]``. Unrecognized tokens are ignored."""
    if not url:
        raise UsageError("URL is required")

    name = ""
    scope: Scope = "user"
    # Placeholder name; the real one is known only after the flags are read.
    auth = ServerSpec(name="")

    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        if token == "--name":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                name = value
        elif token == "--scope":
            value, idx = _take_value(tokens, idx)
            if value is not None:
                scope = _check_scope(value)
        else:
            consumed = _parse_auth_flag(auth, tokens, idx)
            if consumed is None:
                logger.debug("Ignoring unrecognized remote option at position %d", idx)
            else:
                idx = consumed
        idx += 1

    return ServerSpec(
        name=name or derive_server_name(url),
        scope=scope,
        transport="sse" if url.endswith("/sse") else "http",
        url=url,
        headers=auth.headers,
        prompt_bearer=auth.prompt_bearer,
        use_oauth=auth.use_oauth,
        client_id=auth.client_id,
        prompt_client_secret=auth.prompt_client_secret,
    )


def derive_server_name(url: str) -> str:
    """Derive a server name from a URL hostname.

    ``https://mcp.sentry.dev/mcp`` becomes ``sentry-dev``. Unparseable URLs
    and URLs without a host fall back to ``remote-gateway``.
    """
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return FALLBACK_SERVER_NAME
    if not host:
        return FALLBACK_SERVER_NAME
    host = host.removeprefix("mcp-").removeprefix("mcp.").removesuffix(".com")
    return "".join(ch if ("a" <= ch <= "z" or "0" <= ch <= "9") else "-" for ch in host)
