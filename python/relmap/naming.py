"""Identifier to database-name conversion."""

from __future__ import annotations


def to_snake_case(identifier: str) -> str:
    """Convert a PascalCase or camelCase identifier to snake_case.

    An underscore is inserted before an uppercase character when the
    character right before it is lowercase, or when the character right
    after it is lowercase and something has already been emitted. The
    second rule is what splits a leading acronym from the next word.

    Example:
        >>> to_snake_case("CreatedAt")
        'created_at'
        >>> to_snake_case("HTTPServer")
        'http_server'
        >>> to_snake_case("FeedURL")
        'feed_url'
    """
    out: list[str] = []
    last = len(identifier) - 1
    for idx, char in enumerate(identifier):
        prev_char = identifier[idx - 1] if idx > 0 else ""
        next_char = identifier[idx + 1] if idx < last else ""
        if char.isupper() and prev_char.islower():
            out.append("_")
        elif char.isupper() and next_char.islower() and out:
            out.append("_")
        out.append(char.lower())
    return "".join(out)


def table_name(type_name: str) -> str:
    """Derive a table name from a model class name.

    Pluralization is naive: an "s" is always appended.

    Example:
        >>> table_name("FeedItem")
        'feed_items'
    """
    return to_snake_case(type_name) + "s"
