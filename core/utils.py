import re

_INVALID = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify_name(name: str) -> str:
    """
    Latin-only slug used for store and product URLs.

    Names written entirely in another script (e.g. Arabic) produce an empty
    string; callers prefix the owner id so the slug is never blank.
    """
    value = _INVALID.sub("", (name or "").lower())
    value = _SPACES.sub("-", value.strip())
    value = _DASHES.sub("-", value)
    return value.strip("-")
