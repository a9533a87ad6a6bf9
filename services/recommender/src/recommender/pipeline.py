from __future__ import annotations

from collections.abc import Iterable

from recommender.ann import recommend_by_ann
from recommender.features import InteractionStats
from recommender.models import (
    AnnRecommendation,
    AnnWeights,
    JaccardRecommendation,
    MemberRecord,
    PostRecord,
    ProfileRecord,
    RecommendFilters,
)
from recommender.scoring import recommend_by_jaccard


def representative_posts(posts: Iterable[PostRecord]) -> dict[str, PostRecord]:
    """Pick the most recent post per user.

    Posts without ``created_at`` never displace one that has it; otherwise the
    first post seen for a user wins ties.
    """
    chosen: dict[str, PostRecord] = {}
    for post in posts:
        current = chosen.get(post.user_id)
        if current is None:
            chosen[post.user_id] = post
            continue
        if post.created_at and (not current.created_at or post.created_at > current.created_at):
            chosen[post.user_id] = post
    return chosen


def build_member_pool(
    user_id: str,
    posts: Iterable[PostRecord],
    profiles: Iterable[ProfileRecord],
) -> tuple[MemberRecord | None, list[MemberRecord]]:
    post_by_user = representative_posts(posts)
    profile_by_user = {profile.user_id: profile for profile in profiles}

    requester: MemberRecord | None = None
    if user_id in post_by_user or user_id in profile_by_user:
        requester = MemberRecord(
            user_id=user_id,
            post=post_by_user.get(user_id),
            profile=profile_by_user.get(user_id),
        )

    pool = [
        MemberRecord(user_id=member_id, post=post, profile=profile_by_user.get(member_id))
        for member_id, post in post_by_user.items()
        if member_id != user_id
    ]
    return requester, pool


def run_jaccard_pipeline(
    requester: MemberRecord | None,
    pool: list[MemberRecord],
    *,
    top_k: int,
    filters: RecommendFilters | None = None,
) -> list[JaccardRecommendation]:
    if requester is None:
        return []
    candidates = [member.post for member in pool if member.post is not None]
    return recommend_by_jaccard(requester.post, candidates, top_k, filters)


def run_ann_pipeline(
    requester: MemberRecord | None,
    pool: list[MemberRecord],
    weights: AnnWeights,
    interaction_stats: dict[str, InteractionStats],
    *,
    top_k: int,
    filters: RecommendFilters | None = None,
) -> list[AnnRecommendation]:
    return recommend_by_ann(requester, pool, weights, interaction_stats, top_k, filters)


def collect_common_skills(results: Iterable[JaccardRecommendation]) -> list[str]:
    skills: dict[str, None] = {}
    for result in results:
        for skill in result.common_skills:
            skills.setdefault(skill)
    return list(skills)
