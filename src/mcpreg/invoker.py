"""Spawning the collaborator CLI (``claude``).

The child shares this process's stdin/stdout/stderr so interactive flows
such as the OAuth browser handoff work unchanged, and is always waited on.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Sequence

from mcpreg.config import DEFAULT_COLLABORATOR
from mcpreg.errors import ExternalToolError
from mcpreg.redact import mask_sensitive_args

logger = logging.getLogger(__name__)

LIST_TIMEOUT_SECONDS = 10


def _not_installed(binary: str) -> ExternalToolError:
    return ExternalToolError(f"could not run '{binary}' command. Is Claude Code installed?")


def find_collaborator(binary: str = DEFAULT_COLLABORATOR) -> str:
    """Resolve the collaborator executable.

    Names containing a path separator are used as given; bare names are
    looked up on PATH.
    """
    if os.sep in binary or (os.altsep and os.altsep in binary):
        if os.path.isfile(binary) and os.access(binary, os.X_OK):
            return binary
        raise _not_installed(binary)
    which = shutil.which(binary)
    if which is None:
        raise _not_installed(binary)
    return which


def run_collaborator(args: Sequence[str], binary: str = DEFAULT_COLLABORATOR) -> int:
    """Run ``<binary> <args...>`` with inherited stdio and return its exit code."""
    executable = find_collaborator(binary)
    safe = mask_sensitive_args(args)
    logger.info("Invoking collaborator", extra={"command": binary, "argv": safe})
    start = time.monotonic()
    try:
        completed = subprocess.run([executable, *args], check=False)
    except OSError as e:
        logger.error("Collaborator failed to launch", extra={"command": binary, "error": str(e)})
        raise _not_installed(binary) from e
    duration_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(
        "Collaborator exited",
        extra={"command": binary, "exit_code": completed.returncode, "duration_ms": duration_ms},
    )
    return completed.returncode


def capture_collaborator(args: Sequence[str], binary: str = DEFAULT_COLLABORATOR) -> str | None:
    """Run a read-only collaborator command and return its trimmed stdout.

    Returns None when the collaborator is missing, fails, or times out.
    """
    try:
        executable = find_collaborator(binary)
    except ExternalToolError:
        logger.debug("Collaborator %s not found; skipping `%s`", binary, " ".join(args))
        return None
    try:
        result = subprocess.run(
            [executable, *args],
            capture_output=True,
            text=True,
            timeout=LIST_TIMEOUT_SECONDS,
        )
    except subprocess.TimeoutExpired:
        logger.warning("`%s %s` timed out after %ds", binary, " ".join(args), LIST_TIMEOUT_SECONDS)
        return None
    except OSError as e:
        logger.warning("`%s %s` could not be run: %s", binary, " ".join(args), e)
        return None
    if result.returncode != 0:
        logger.warning(
            "`%s %s` failed (exit %d): %s",
            binary,
            " ".join(args),
            result.returncode,
            (result.stderr or "").strip(),
        )
        return None
    return result.stdout.strip()
