"""Role normalization for vendor message payloads.

Vendors label turns with whatever their backend calls the speaker. Known
speaker names collapse to the three canonical roles; anything else is kept
verbatim so the transcript still shows what the vendor wrote.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Canonical transcript roles."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


ROLE_MAP = {
    "user": Role.USER,
    "human": Role.USER,
    "assistant": Role.ASSISTANT,
    "ai": Role.ASSISTANT,
    "bot": Role.ASSISTANT,
    "model": Role.ASSISTANT,
    "gpt": Role.ASSISTANT,
    "claude": Role.ASSISTANT,
    "gemini": Role.ASSISTANT,
    "system": Role.SYSTEM,
}

UNKNOWN_ROLE = "unknown"


def normalize_role(raw: str | None) -> str:
    """Map a vendor role string onto a canonical role.

    Matching is case-insensitive. Unrecognized roles pass through unchanged
    (the "other" case); a missing role becomes ``"unknown"``.
    """
    if not raw:
        return UNKNOWN_ROLE
    role = ROLE_MAP.get(raw.strip().lower())
    return role.value if role is not None else raw


__all__ = ["Role", "ROLE_MAP", "UNKNOWN_ROLE", "normalize_role"]
