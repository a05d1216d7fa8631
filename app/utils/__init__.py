"""Utility functions for FormRelay."""

from .text import mask_email, normalize_text, sanitize_block, sanitize_line, strip_markup

__all__ = [
    "mask_email",
    "normalize_text",
    "sanitize_block",
    "sanitize_line",
    "strip_markup",
]
