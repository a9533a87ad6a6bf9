from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from recommender.models import FACETS, JaccardRecommendation, PostRecord, RecommendFilters
from recommender.tags import intersection, jaccard

FACET_WEIGHTS: dict[str, float] = {
    "skills": 0.4,
    "interests": 0.3,
    "availability": 0.1,
    "personality": 0.1,
    "experience": 0.1,
}

# Filter field that overrides each facet. Personality has no override.
FACET_OVERRIDES: dict[str, str] = {
    "skills": "skills",
    "interests": "interests",
    "availability": "availability",
    "experience": "experience_level",
}


def _override_value(filters: RecommendFilters | None, facet: str) -> str | None:
    if filters is None or facet not in FACET_OVERRIDES:
        return None
    value = getattr(filters, FACET_OVERRIDES[facet])
    if value is None or not value.strip():
        return None
    return value


def resolve_query_facets(
    requester_post: PostRecord,
    filters: RecommendFilters | None = None,
) -> dict[str, Any]:
    """Comparison basis per facet: a non-blank filter override, else the requester's post."""
    query: dict[str, Any] = {}
    for facet in FACETS:
        override = _override_value(filters, facet)
        query[facet] = override if override is not None else requester_post.facet(facet)
    return query


def facet_scores(query: dict[str, Any], candidate: PostRecord) -> dict[str, float]:
    return {facet: jaccard(query[facet], candidate.facet(facet)) for facet in FACETS}


def composite_score(scores: dict[str, float]) -> float:
    return math.fsum(FACET_WEIGHTS[facet] * scores[facet] for facet in FACETS)


def recommend_by_jaccard(
    requester_post: PostRecord | None,
    candidates: Iterable[PostRecord],
    top_k: int = 20,
    filters: RecommendFilters | None = None,
) -> list[JaccardRecommendation]:
    if requester_post is None:
        return []

    query = resolve_query_facets(requester_post, filters)
    ranked: list[JaccardRecommendation] = []
    for candidate in candidates:
        if candidate.id == requester_post.id or candidate.user_id == requester_post.user_id:
            continue

        scores = facet_scores(query, candidate)
        score = composite_score(scores)
        if score <= 0:
            continue

        ranked.append(
            JaccardRecommendation(
                post_id=candidate.id,
                user_id=candidate.user_id,
                score=score,
                skill_score=scores["skills"],
                interest_score=scores["interests"],
                availability_score=scores["availability"],
                personality_score=scores["personality"],
                experience_score=scores["experience"],
                common_skills=intersection(query["skills"], candidate.skills),
                common_interests=intersection(query["interests"], candidate.interests),
            )
        )

    # list.sort is stable, so equal scores keep candidate order.
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked[:top_k]
