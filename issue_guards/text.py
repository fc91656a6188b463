"""Small string helpers shared by guards and renderers."""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def capitalize(text: str) -> str:
    """Upper-case the first character and leave the rest untouched."""
    if not text:
        return text
    return text[0].upper() + text[1:]


def slugify(text: str) -> str:
    """Lower-case ``text`` and collapse every non-alphanumeric run into one hyphen."""
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    """Cut ``text`` so that it plus ``suffix`` fits in ``max_length`` characters."""
    if not text:
        return text
    if len(text) <= max_length - len(suffix):
        return text
    return text[: max_length - len(suffix)] + suffix
