import re

from toolkit.core.exceptions import EmptyResultError

_NOT_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Turn free text into a lowercase, hyphen-separated slug.

    Runs of characters outside ``[a-z0-9]`` collapse into one hyphen, so text
    in non-Latin scripts drops out entirely.

    Raises:
        EmptyResultError: If ``text`` is empty or nothing usable is left.
    """
    if not text:
        raise EmptyResultError("empty string not permitted")

    slug = _NOT_SLUG.sub("-", text.lower()).strip("-")
    if not slug:
        raise EmptyResultError("after removing characters, slug is zero length")
    return slug
