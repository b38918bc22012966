"""Masked secret capture on the controlling terminal.

Secrets are read one byte at a time with the terminal in raw mode, echoing
``*`` per character. When stdin is not a TTY the click hidden prompt is
used instead. Values only ever live in memory and flow straight into the
ServerSpec.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
import termios
import tty
from collections.abc import Callable, Iterator

import click

from mcpreg.errors import SecretInputError
from mcpreg.models import SecretSlot, ServerSpec

logger = logging.getLogger(__name__)

_ENTER = (0x0D, 0x0A)
_CTRL_C = 0x03
_CTRL_D = 0x04
_ERASE = (0x7F, 0x08)

Prompter = Callable[[str], str]


# ---------------------------------------------------------------------------
# Raw terminal mode
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def raw_input_mode(fd: int) -> Iterator[None]:
    """Put *fd* into raw mode for the duration of the block.

    Raises ``termios.error`` before entering if *fd* is not a terminal.
    The saved attributes are restored on every exit path.
    """
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def _stdin_tty_fd() -> int | None:
    """Return stdin's file descriptor if it is an interactive terminal."""
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    return fd if os.isatty(fd) else None


def _echo(text: str) -> None:
    click.echo(text, nl=False)


# ---------------------------------------------------------------------------
# Line reader
# ---------------------------------------------------------------------------


def read_masked_line(
    read_byte: Callable[[], bytes],
    echo: Callable[[str], None] = _echo,
    newline: str = "\r\n",
) -> str:
    """Read one masked line from *read_byte* and return it trimmed.

    Enter commits, Ctrl-D or EOF commits what was typed so far, Ctrl-C
    raises ``SecretInputError("interrupted")``. Backspace erases the last
    character and its ``*``. Non-printable bytes are dropped.
    """
    buf = bytearray()
    while True:
        try:
            chunk = read_byte()
        except OSError as e:
            echo(newline)
            raise SecretInputError(f"reading secret: {e}") from e
        if not chunk:
            echo(newline)
            return buf.decode("ascii").strip()
        b = chunk[0]
        if b in _ENTER or b == _CTRL_D:
            echo(newline)
            return buf.decode("ascii").strip()
        if b == _CTRL_C:
            echo(newline)
            raise SecretInputError("interrupted")
        if b in _ERASE:
            if buf:
                del buf[-1]
                echo("\b \b")
        elif 0x20 <= b < 0x7F:
            buf.append(b)
            echo("*")


def _fallback_hidden_read() -> str:
    """Hidden single-line read for non-interactive stdin."""
    try:
        value = click.prompt("", hide_input=True, default="", show_default=False, prompt_suffix="")
    except click.Abort as e:
        raise SecretInputError("interrupted") from e
    return str(value).strip()


def prompt_secret(label: str) -> str:
    """Print *label* and read a secret with masked echo.

    Returns the trimmed value, possibly empty; rejecting an empty secret is
    the caller's decision.
    """
    _echo(label)
    fd = _stdin_tty_fd()
    if fd is None:
        logger.debug("stdin is not a terminal; using hidden prompt fallback")
        return _fallback_hidden_read()
    try:
        with raw_input_mode(fd):
            return read_masked_line(lambda: os.read(fd, 1))
    except termios.error:
        logger.debug("raw mode unavailable; using hidden prompt fallback")
        return _fallback_hidden_read()


# ---------------------------------------------------------------------------
# Secret resolution for a ServerSpec
# ---------------------------------------------------------------------------

_MISSING_MESSAGES: dict[SecretSlot, str] = {
    "api_key": "no API key provided",
    "bearer": "no token provided",
    "client_secret": "no client secret provided",
}


def _announce(spec: ServerSpec, slot: SecretSlot) -> str:
    """Print context for *slot* and return the prompt label."""
    if slot == "api_key":
        click.echo(f"\nAPI key required for '{spec.name}' server.")
        click.echo(f"The key will be stored as env var: {spec.api_key_env}")
        click.echo("Stored in your Claude config (~/.claude.json), NOT in project files.\n")
        return f"Enter {spec.api_key_env}: "
    if slot == "bearer":
        click.echo(f"\nBearer token required for '{spec.name}'.")
        click.echo("Stored securely in your Claude config.\n")
        return "Enter Bearer token: "
    click.echo(f"\nOAuth client secret required for '{spec.name}'.")
    click.echo("Stored securely in your Claude config.\n")
    return "Enter OAuth client secret: "


def resolve_secrets(spec: ServerSpec, prompter: Prompter | None = None) -> ServerSpec:
    """Prompt for every secret *spec* needs and write them into place.

    All-or-nothing: on the first empty or interrupted secret the error
    propagates and nothing captured so far is applied.
    """
    prompter = prompter or prompt_secret
    for slot in spec.required_secrets():
        label = _announce(spec, slot)
        value = prompter(label).strip()
        if not value:
            spec.resolved_secrets.clear()
            raise SecretInputError(_MISSING_MESSAGES[slot])
        spec.resolved_secrets[slot] = value
    spec.apply_secrets()
    return spec
