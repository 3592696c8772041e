"""Construction of search queries from positive and negative terms."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def _phrases(terms: list[str]) -> list[dict[str, Any]]:
    return [{"match_phrase": {"content": term}} for term in terms]


def build_query(positive: Iterable[str] | None = None, negative: Iterable[str] | None = None) -> dict[str, Any]:
    """Build a bool query: positive terms any-of, negative terms all-of, either clause matching."""
    positive = list(positive or ())
    negative = list(negative or ())

    should: list[dict[str, Any]] = []
    if positive:
        should.append({"bool": {"should": _phrases(positive)}})
    if negative:
        should.append({"bool": {"must": _phrases(negative)}})

    return {
        "from": 0,
        "size": 100,
        "track_total_hits": True,
        "query": {"bool": {"should": should}},
    }