"""Inbound suburb name normalisation."""

from __future__ import annotations

import re
from urllib.parse import unquote

_WHITESPACE_RE = re.compile(r"\s+")


def _safe_unquote(value: str) -> str:
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


def normalize_suburb_name(raw: str | None) -> str:
    if raw is None:
        return ""

    cleaned = raw.strip()
    if not cleaned:
        return ""

    decoded = _safe_unquote(cleaned)
    return decoded.replace("+", " ").strip()


def memo_key(suburb: str) -> str:
    return _WHITESPACE_RE.sub(" ", normalize_suburb_name(suburb)).lower()
