"""Error taxonomy for the registration engine.

Every error surfaces at the CLI boundary with a user-facing message and
exit status 1. Nothing here is retried.
"""

from __future__ import annotations


class McpregError(Exception):
    """Base class for errors reported to the user."""

    exit_code = 1


class UsageError(McpregError):
    """Malformed invocation: missing name, missing URL, bad enum value."""


class SecretInputError(McpregError):
    """Secret capture failed: empty value, interrupt, or unreadable input."""


class ExternalToolError(McpregError):
    """The collaborator binary could not be located or launched."""


class ExternalExitError(McpregError):
    """The collaborator ran but exited non-zero."""

    def __init__(self, code: int, action: str = "run collaborator") -> None:
        self.code = code
        self.action = action
        super().__init__(f"Failed to {action}. Exit code: {code}")
