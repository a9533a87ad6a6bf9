"""
Tag normalisation and Jaccard similarity over tag collections.

Facet fields arrive in whatever shape the store or the request handed us:
``None``, a comma separated string, a JSON array literal, a list, or a
``{"tag": true}`` presence map. Everything is folded into an ordered list of
trimmed, non-blank tokens here so the scorers only ever see canonical sets.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from common.utils import split_csv

SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _dedupe(tokens: list[str]) -> list[str]:
    return list(dict.fromkeys(token for token in tokens if token))


def _parse_json_array(text: str) -> list[Any] | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, list) else None


def to_tag_list(raw: Any) -> list[str]:
    """Normalise a tag-collection-like value into ordered, unique tokens.

    Never raises: unknown shapes collapse to a single stringified token or to
    an empty list.
    """
    if raw is None:
        return []

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        parsed = _parse_json_array(text)
        if parsed is not None:
            return _dedupe([_stringify(item) for item in parsed])
        return _dedupe(split_csv(text))

    if isinstance(raw, SEQUENCE_TYPES):
        return _dedupe([_stringify(item) for item in raw])

    if isinstance(raw, Mapping):
        return _dedupe([_stringify(key) for key in raw])

    return _dedupe([_stringify(raw)])


def to_tag_set(raw: Any) -> set[str]:
    return set(to_tag_list(raw))


def intersection(a: Any, b: Any) -> list[str]:
    """Tokens present in both collections, in the order they appear in ``a``."""
    other = to_tag_set(b)
    return [token for token in to_tag_list(a) if token in other]


def jaccard(a: Any, b: Any) -> float:
    set_a = to_tag_set(a)
    set_b = to_tag_set(b)
    union = set_a | set_b
    # Two empty collections carry no evidence of a match.
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)
