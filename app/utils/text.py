"""Text sanitization and masking utilities for FormRelay."""

from __future__ import annotations

import html
import re
from typing import Optional

import bleach

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f-\x9f]")
_SCRIPT_BLOCKS = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
# CR/LF start a new header; ':' and ';' separate header names and parameters
_HEADER_CHARS = re.compile(r"[\r\n]+")
_HEADER_PUNCT = re.compile(r"[:;]")


def strip_markup(text: str) -> str:
    """Remove every tag, attribute and comment, returning plain text.

    Script and style blocks are dropped together with their content. Entities
    are decoded so the result is plain text; HTML escaping happens again at
    render time.
    """
    if not text:
        return ""
    text = _SCRIPT_BLOCKS.sub("", text)
    cleaned = bleach.clean(text, tags=set(), attributes={}, strip=True, strip_comments=True)
    return html.unescape(cleaned)


def normalize_text(text: str) -> str:
    """Collapse whitespace runs into single spaces."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text.strip())


def _fixed_point(func, text: str) -> str:
    """Apply `func` until the output stops changing.

    Each changing pass shortens or rewrites the text, so the input length
    bounds the number of passes even for deeply nested entities.
    """
    current = text
    for _ in range(len(text) + 2):
        updated = func(current)
        if updated == current:
            return updated
        current = updated
    return current


def _clean_line(text: str) -> str:
    text = _CONTROL_CHARS.sub("", text)
    text = strip_markup(text)
    text = _HEADER_CHARS.sub(" ", text)
    text = _HEADER_PUNCT.sub("", text)
    return normalize_text(text)


def _clean_block(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS.sub("", text)
    text = strip_markup(text)
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def sanitize_line(text: Optional[str]) -> str:
    """Sanitize a single-line value that may end up in a mail header.

    Markup is removed, CR/LF become spaces and ':'/';' are dropped. Applying
    it to its own output returns the same string.
    """
    if text is None:
        return ""
    return _fixed_point(_clean_line, str(text))


def sanitize_block(text: Optional[str]) -> str:
    """Sanitize multi-line body text. Line breaks are kept and normalized to LF."""
    if text is None:
        return ""
    return _fixed_point(_clean_block, str(text))


def mask_email(address: Optional[str]) -> str:
    """Partially mask an address for log output: ``john@example.com`` -> ``jo***@example.com``."""
    if not address:
        return "<none>"
    local, sep, domain = str(address).partition("@")
    if not sep:
        return local[:2] + "***"
    return f"{local[:2]}***@{domain}"
