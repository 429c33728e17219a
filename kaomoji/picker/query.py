"""Query parsing: structured cat:/tag: filters plus a free-text residual."""

import re
import unicodedata

from .models import FilterKind, Query, QueryFilter

# Leading whitespace is part of the match so it is removed with the token
TOKEN_PATTERN = re.compile(r'(?:^|\s)(cat|tag):(\S*)')

# Letters, combining marks and numbers in any script, plus these
_EXTRA_ALLOWED = frozenset("_-")

_KINDS = {
    "cat": FilterKind.CATEGORY,
    "tag": FilterKind.TAG,
}


def _allowed(ch: str) -> bool:
    return ch in _EXTRA_ALLOWED or unicodedata.category(ch)[0] in "LMN"


def sanitize_value(value: str) -> str:
    """Strip disallowed characters and lowercase a filter value."""
    return ''.join(ch for ch in value if _allowed(ch)).lower()


def parse_query(raw: str) -> Query:
    """
    Split a raw query into structured filters and a residual.

    Filters are collected left to right and combined with AND semantics.
    A filter whose value sanitizes to the empty string stays active and
    matches nothing.
    """
    filters = [
        QueryFilter(_KINDS[match.group(1)], sanitize_value(match.group(2)))
        for match in TOKEN_PATTERN.finditer(raw)
    ]
    residual = TOKEN_PATTERN.sub('', raw).strip()
    return Query(filters=tuple(filters), residual=residual)
