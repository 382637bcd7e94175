"""Shared text helpers for the built-in message improvers."""

from __future__ import annotations

import re

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]$")


def capitalize_first(text: str) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    if not text:
        return text
    return text[0].upper() + text[1:]


def ensure_terminal_punctuation(text: str, mark: str = ".") -> str:
    """Append `mark` unless the text already ends in '.', '!' or '?'."""
    if not text or _TERMINAL_PUNCTUATION.search(text):
        return text
    return text + mark


def replace_words(text: str, replacements: dict[str, str]) -> str:
    """Whole-word, case-insensitive substitution applied in dict order."""
    for word, replacement in replacements.items():
        pattern = re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
        text = pattern.sub(replacement, text)
    return text
