"""
Channel name cleanup

Cosmetic normalization applied to the channel names users put in queries.
"""
import re
import unicodedata


_SEPARATORS = re.compile(r"[\s\-_]+")


def clean_channel_name(name: str | None) -> str:
    """
    Normalize a channel display name

    Folds full-width characters to their ASCII forms, drops whitespace and
    separator characters and upper-cases Latin letters, so "cctv-1 综合"
    and "ＣＣＴＶ1综合" both become "CCTV1综合".

    Args:
        name: Raw channel name from the query, may be None

    Returns:
        Cleaned name, or "" when no name was given
    """
    if not name:
        return ""
    folded = unicodedata.normalize("NFKC", name)
    return _SEPARATORS.sub("", folded).upper()
