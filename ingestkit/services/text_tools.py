"""Random tokens and URL slugs."""

import re
import secrets
import string

from ingestkit.core.errors import SlugError

RANDOM_ALPHABET = string.ascii_letters + string.digits

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def random_string(length: int) -> str:
    """Return ``length`` random alphanumeric characters drawn from a CSPRNG."""
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def slugify(text: str) -> str:
    """
    Lowercase ``text`` and collapse every run of non [a-z0-9] characters into '-'.

    Non-latin characters are dropped, so "こんにちは、みんな hello world" gives
    "hello-world".

    Raises:
        SlugError: If ``text`` is empty or nothing usable is left after cleaning.
    """
    if text == "":
        raise SlugError("empty string not permitted")
    slug = _NON_SLUG.sub("-", text.lower()).strip("-")
    if not slug:
        raise SlugError("after removing characters, slug is zero length")
    return slug
