"""
Naming policy helpers shared by the validation and auto-fix engines.
"""

import re
import unicodedata
from typing import Iterable, Optional

from constants import FixConfig, NamingLimits

NAME_PATTERN = re.compile(NamingLimits.NAME_PATTERN)


def is_valid_name(name: str) -> bool:
    return bool(NAME_PATTERN.match(name))


def sanitize_name(name: str, fallback: str) -> str:
    """
    Rewrite a name into ``[A-Za-z][A-Za-z0-9_]*``.

    Accents are folded to ASCII, other invalid characters become ``_`` and
    a name that does not start with a letter is prefixed with ``fallback``.
    """
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", folded)
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    if not cleaned:
        return fallback
    if not cleaned[0].isalpha():
        cleaned = f"{fallback}_{cleaned}"
    return cleaned


def truncate_name(name: str, max_length: int) -> str:
    if len(name) <= max_length:
        return name
    return name[:max_length].rstrip("_") or name[:max_length]


def unique_name(candidate: str, taken: Iterable[str], max_length: Optional[int] = None) -> str:
    """
    Return ``candidate``, or ``candidate_2``, ``candidate_3``... when taken.

    Comparison is case-insensitive; suffixed names are truncated to fit
    ``max_length``.
    """
    used = {name.lower() for name in taken}
    if max_length is not None:
        candidate = truncate_name(candidate, max_length)
    if candidate.lower() not in used:
        return candidate
    counter = 2
    while True:
        suffix = f"_{counter}"
        base = candidate
        if max_length is not None:
            base = truncate_name(candidate, max_length - len(suffix))
        name = f"{base}{suffix}"
        if name.lower() not in used:
            return name
        counter += 1


def prefixed_name(entity_name: str, attribute_name: str) -> str:
    """``ACCOUNT`` + ``statuscode`` -> ``account_statuscode``."""
    return f"{entity_name.lower()}_{attribute_name.lower()}"


def junction_name(left: str, right: str) -> str:
    """``STUDENT`` + ``COURSE`` -> ``STUDENT_COURSE``."""
    return f"{left.upper()}{FixConfig.JUNCTION_SEPARATOR}{right.upper()}"
