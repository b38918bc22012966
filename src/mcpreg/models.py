"""Data model for a single server registration request."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Constrained-string Literal types
# ---------------------------------------------------------------------------

Scope = Literal["local", "project", "user"]
Transport = Literal["stdio", "http", "sse"]
AuthMode = Literal["none", "api_key_env", "bearer_prompt", "oauth_client_credentials"]
SecretSlot = Literal["api_key", "bearer", "client_secret"]

VALID_SCOPES: frozenset[str] = frozenset({"local", "project", "user"})
VALID_TRANSPORTS: frozenset[str] = frozenset({"stdio", "http", "sse"})
NETWORK_TRANSPORTS: frozenset[str] = frozenset({"http", "sse"})

BEARER_PREFIX = "Authorization: Bearer "


# ---------------------------------------------------------------------------
# ServerSpec
# ---------------------------------------------------------------------------


@dataclass
class ServerSpec:
    """One registration request, built from a single CLI invocation.

    ``env_vars`` is an ordered association list so the generated command is
    reproducible. ``resolved_secrets`` only holds values between prompting
    and :meth:`apply_secrets`; afterwards each secret lives in exactly one
    place (an env var, a header, or ``client_secret``). None of the fields
    that can hold a secret appear in ``repr``.
    """

    name: str
    scope: Scope = "local"
    transport: Transport = "stdio"
    env_vars: list[tuple[str, str]] = field(default_factory=list, repr=False)
    headers: list[str] = field(default_factory=list, repr=False)
    command_args: list[str] = field(default_factory=list)
    url: str = ""
    api_key_env: str = ""
    prompt_bearer: bool = False
    use_oauth: bool = False
    client_id: str = ""
    prompt_client_secret: bool = False
    client_secret: str = field(default="", repr=False)
    resolved_secrets: dict[SecretSlot, str] = field(default_factory=dict, repr=False)

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "name" and "name" in self.__dict__:
            raise AttributeError("ServerSpec.name is immutable once parsed")
        super().__setattr__(key, value)

    @property
    def auth_mode(self) -> AuthMode:
        if self.use_oauth or self.client_id or self.prompt_client_secret:
            return "oauth_client_credentials"
        if self.prompt_bearer:
            return "bearer_prompt"
        if self.api_key_env:
            return "api_key_env"
        return "none"

    @property
    def is_network(self) -> bool:
        return self.transport in NETWORK_TRANSPORTS

    def set_env(self, key: str, value: str) -> None:
        """Set an env var, replacing an existing key in place."""
        for idx, (existing, _) in enumerate(self.env_vars):
            if existing == key:
                self.env_vars[idx] = (key, value)
                return
        self.env_vars.append((key, value))

    def env_keys(self) -> list[str]:
        return [key for key, _ in self.env_vars]

    def required_secrets(self) -> list[SecretSlot]:
        """Secret slots that must be prompted for, in prompt order."""
        slots: list[SecretSlot] = []
        if self.api_key_env:
            slots.append("api_key")
        if self.prompt_bearer:
            slots.append("bearer")
        if self.prompt_client_secret:
            slots.append("client_secret")
        return slots

    def has_auth_header(self) -> bool:
        return any(h.lower().startswith("authorization") for h in self.headers)

    def apply_secrets(self) -> None:
        """Move resolved secrets into their destinations and clear the slots."""
        for slot, value in self.resolved_secrets.items():
            if slot == "api_key":
                self.set_env(self.api_key_env, value)
            elif slot == "bearer":
                self.headers.append(BEARER_PREFIX + value)
            elif slot == "client_secret":
                self.client_secret = value
        self.resolved_secrets.clear()
