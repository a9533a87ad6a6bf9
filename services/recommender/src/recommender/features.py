from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from common.utils import clamp

from recommender.models import FACETS, InteractionRecord, MemberRecord, RecommendFilters
from recommender.scoring import resolve_query_facets
from recommender.tags import jaccard

FEATURE_NAMES: tuple[str, ...] = (
    "jaccard_skills",
    "jaccard_interests",
    "jaccard_available",
    "jaccard_personality",
    "jaccard_experience",
    "same_department",
    "year_similarity",
    "interaction_score",
    "has_past_interaction",
)

INTERACTION_WEIGHTS = {"view": 0.1, "chat": 0.4, "team_join": 0.7}
INTERACTION_SCALE = 10.0
MAX_YEAR_GAP = 4
NEUTRAL_YEAR_SIMILARITY = 0.5
YEAR_RANGE_PENALTY = 0.6


@dataclass
class InteractionStats:
    views: int = 0
    chats: int = 0
    teams: int = 0

    def observe(self, action: str) -> None:
        if action == "view":
            self.views += 1
        elif action == "chat":
            self.chats += 1
        elif action == "team_join":
            self.teams += 1

    @property
    def raw_score(self) -> float:
        return (
            INTERACTION_WEIGHTS["view"] * self.views
            + INTERACTION_WEIGHTS["chat"] * self.chats
            + INTERACTION_WEIGHTS["team_join"] * self.teams
        )


def build_interaction_stats(
    interactions: Iterable[InteractionRecord],
    from_user_id: str | None = None,
) -> dict[str, InteractionStats]:
    """Count recognised actions per target user; other actions are ignored."""
    stats: dict[str, InteractionStats] = {}
    for interaction in interactions:
        if from_user_id is not None and interaction.from_user_id != from_user_id:
            continue
        if interaction.action not in INTERACTION_WEIGHTS:
            continue
        stats.setdefault(interaction.to_user_id, InteractionStats()).observe(interaction.action)
    return stats


def interaction_score(stats: InteractionStats | None) -> tuple[float, float]:
    """Return ``(score, has_past_interaction)``.

    The flag is taken from the unclamped raw sum so it stays binary after the
    score saturates.
    """
    if stats is None:
        return 0.0, 0.0
    raw = stats.raw_score
    return clamp(raw / INTERACTION_SCALE), 1.0 if raw > 0 else 0.0


def year_similarity(
    requester_year: int | None,
    candidate_year: int | None,
    filters: RecommendFilters | None = None,
) -> float:
    similarity = NEUTRAL_YEAR_SIMILARITY
    if requester_year is not None and candidate_year is not None:
        gap = min(abs(requester_year - candidate_year), MAX_YEAR_GAP)
        similarity = 1 - gap / MAX_YEAR_GAP

    if candidate_year is not None and filters is not None:
        # Each violated bound applies the penalty; a degenerate min > max compounds.
        if filters.preferred_year_min is not None and candidate_year < filters.preferred_year_min:
            similarity *= YEAR_RANGE_PENALTY
        if filters.preferred_year_max is not None and candidate_year > filters.preferred_year_max:
            similarity *= YEAR_RANGE_PENALTY
    return clamp(similarity)


def same_department(requester_department: str | None, candidate_department: str | None) -> float:
    if not requester_department or not candidate_department:
        return 0.0
    return 1.0 if requester_department == candidate_department else 0.0


def build_features(
    requester: MemberRecord,
    candidate: MemberRecord,
    interaction_stats: dict[str, InteractionStats],
    filters: RecommendFilters | None = None,
) -> list[float]:
    if requester.post is None or candidate.post is None:
        raise ValueError("Both members need a post to build a feature vector.")

    query = resolve_query_facets(requester.post, filters)
    facet_features = [
        clamp(jaccard(query[facet], candidate.post.facet(facet)))
        for facet in FACETS
    ]
    score, has_interaction = interaction_score(interaction_stats.get(candidate.user_id))
    return [
        *facet_features,
        same_department(requester.department, candidate.department),
        year_similarity(requester.year, candidate.year, filters),
        score,
        has_interaction,
    ]
