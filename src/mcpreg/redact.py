"""Display-safe copies of argument vectors."""

from __future__ import annotations

from collections.abc import Sequence

from mcpreg.parser import FLAG_CLIENT_SECRET, FLAG_HEADER

MASK = "****"
MASKED_BEARER = f"Authorization: Bearer {MASK}"


def _mask_token(prev: str, token: str) -> str:
    if prev == "-e" and "=" in token:
        key, _, _ = token.partition("=")
        return f"{key}={MASK}"
    if prev == FLAG_HEADER and "bearer" in token.lower():
        return MASKED_BEARER
    if prev == FLAG_CLIENT_SECRET:
        return MASK
    return token


def mask_sensitive_args(args: Sequence[str]) -> list[str]:
    """Return a copy of *args* with values after sensitive flags masked.

    The result has the same length as *args*; *args* itself is untouched.
    """
    safe = list(args[:1])
    for prev, token in zip(args, args[1:]):
        safe.append(_mask_token(prev, token))
    return safe
