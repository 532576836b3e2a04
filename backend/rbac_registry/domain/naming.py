"""Normalization rules for permission and role business keys.

Every identity comparison on a permission or role name goes through
``normalize_name``: surrounding whitespace is dropped and the rest is compared
exactly (case-sensitive). Names are stored already normalized.
"""


def normalize_name(value: str) -> str:
    return value.strip()


def normalize_filter(value: str | None) -> str | None:
    """Return the trimmed substring filter, or None when there is nothing to filter by."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None
