"""
Sector token normalization.
"""

from __future__ import annotations

import re

from diskspec.core.errors import InvalidSector
from diskspec.core.models import Sector

MEBIBYTE_SUFFIX = "MiB"
_SIGNED = re.compile(r"[+-]?[0-9]+")


def mebibytes_to_megabytes(mebibytes: int) -> int:
    """Convert MiB to whole metric megabytes, truncating toward zero."""
    scaled = abs(mebibytes) * 1_048_576 // 1_000_000
    return -scaled if mebibytes < 0 else scaled


def normalize_sector_token(token: str) -> str:
    """
    Rewrite a ``<N>MiB`` token as ``<M>M``; other tokens are returned as-is.

    The conversion is lossy: 1000MiB becomes 1048M, not 1048.576M.
    """
    if not token.endswith(MEBIBYTE_SUFFIX):
        return token

    count = token[: -len(MEBIBYTE_SUFFIX)]
    if not _SIGNED.fullmatch(count):
        raise InvalidSector(token)
    return f"{mebibytes_to_megabytes(int(count))}M"


def parse_sector(token: str) -> Sector:
    """Parse a sector token, accepting ``MiB`` units on top of the generic grammar."""
    normalized = normalize_sector_token(token)
    try:
        return Sector.parse(normalized)
    except ValueError:
        raise InvalidSector(token) from None
