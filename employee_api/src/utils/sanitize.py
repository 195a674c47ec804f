"""Sanitizing of free-text filter input before it reaches a MongoDB query."""

import re

_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_string(value: str) -> str:
    """
    Strip HTML tags and surrounding whitespace.

    Args:
        value: Raw user input

    Returns:
        Sanitized string ("" for non-string input)
    """
    if not isinstance(value, str):
        return ""
    return _TAG_RE.sub("", value.strip())


def escape_regex(value: str) -> str:
    """
    Escape regex metacharacters so the value only ever matches literally.

    Args:
        value: String to escape

    Returns:
        Escaped string ("" for non-string input)
    """
    if not isinstance(value, str):
        return ""
    return re.escape(value)


def sanitize_for_regex(value: str) -> str:
    """Sanitize, then escape, a value destined for a ``$regex`` clause."""
    return escape_regex(sanitize_string(value))
