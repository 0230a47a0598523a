"""Normalization of raw page/limit inputs."""

import re
from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True)
class Paging:
    """Normalized pagination window.

    Attributes:
        page: 1-based page number
        limit: Page size, between 1 and MAX_LIMIT
        skip: Number of records before the first one on this page
    """

    page: int
    limit: int
    skip: int


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(raw: Any) -> int | None:
    # leading integer only: "2.5" -> 2, "10abc" -> 10
    if raw is None or isinstance(raw, bool):
        return None
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return None
    return int(match.group(1))


def parse_paging(page: Any = None, limit: Any = None) -> Paging:
    """Normalize raw page and limit values.

    Missing, non-numeric and zero values fall back to the defaults. The page
    is raised to at least 1 and the limit is clamped to [1, MAX_LIMIT].

    Args:
        page: Raw page value (string, int or None)
        limit: Raw limit value (string, int or None)

    Returns:
        Paging: Normalized page, limit and skip
    """
    parsed_page = _parse_int(page) or DEFAULT_PAGE
    parsed_limit = _parse_int(limit) or DEFAULT_LIMIT

    normalized_page = max(1, parsed_page)
    normalized_limit = min(MAX_LIMIT, max(1, parsed_limit))

    return Paging(
        page=normalized_page,
        limit=normalized_limit,
        skip=(normalized_page - 1) * normalized_limit,
    )
