"""Helpers for keeping credentials out of log output."""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_BASIC_RE = re.compile(r"(?i)basic\s+[A-Za-z0-9+/=]+")


def redact_text(value: str | None) -> str:
    """Return ``value`` with e-mail addresses and basic-auth tokens removed."""

    if not value:
        return ""
    redacted = _BASIC_RE.sub("Basic ***", str(value))
    redacted = _EMAIL_RE.sub("***@***", redacted)
    return redacted.replace("authorization", "auth").replace("Authorization", "Auth")


def mask_identifier(value: str | None) -> str:
    """Return a masked identifier suitable for log output."""

    if value is None:
        return ""
    trimmed = str(value).strip()
    if not trimmed:
        return ""
    if len(trimmed) <= 4:
        return "***"
    if len(trimmed) <= 8:
        return f"{trimmed[:2]}...{trimmed[-2:]}"
    return f"{trimmed[:6]}...{trimmed[-4:]}"
