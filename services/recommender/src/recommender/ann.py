"""
Fixed-topology feed-forward scorer (input -> ReLU hidden layer -> sigmoid).

Weights are supplied by the caller and never mutated here; swapping the
bundle is the only way to change how candidates are scored.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from recommender.features import FEATURE_NAMES, InteractionStats, build_features
from recommender.models import AnnRecommendation, AnnWeights, MemberRecord, RecommendFilters

SIGMOID_SATURATION = 30.0


class AnnDimensionError(ValueError):
    pass


def _dense(
    vector: Sequence[float],
    matrix: Sequence[Sequence[float]],
    bias: Sequence[float],
) -> list[float]:
    return [
        bias[row_index] + sum(weight * value for weight, value in zip(row, vector, strict=True))
        for row_index, row in enumerate(matrix)
    ]


def _relu(vector: Iterable[float]) -> list[float]:
    return [value if value > 0 else 0.0 for value in vector]


def _sigmoid(value: float) -> float:
    if value <= -SIGMOID_SATURATION:
        return 0.0
    if value >= SIGMOID_SATURATION:
        return 1.0
    return 1.0 / (1.0 + math.exp(-value))


def predict(features: Sequence[float], weights: AnnWeights) -> float:
    if len(features) != weights.input_size:
        raise AnnDimensionError(
            f"ANN input size mismatch: expected {weights.input_size}, got {len(features)}"
        )
    hidden = _relu(_dense(features, weights.w1, weights.b1))
    output = weights.b2 + sum(
        weight * value for weight, value in zip(weights.w2, hidden, strict=True)
    )
    return _sigmoid(output)


def recommend_by_ann(
    requester: MemberRecord | None,
    pool: Iterable[MemberRecord],
    weights: AnnWeights,
    interaction_stats: dict[str, InteractionStats],
    top_k: int = 20,
    filters: RecommendFilters | None = None,
) -> list[AnnRecommendation]:
    if requester is None or requester.post is None:
        return []

    ranked: list[AnnRecommendation] = []
    for candidate in pool:
        if candidate.user_id == requester.user_id or candidate.post is None:
            continue

        features = build_features(requester, candidate, interaction_stats, filters)
        ranked.append(
            AnnRecommendation(
                target_user_id=candidate.user_id,
                target_post_id=candidate.post.id,
                ann_score=predict(features, weights),
                features=features,
                feature_names=list(FEATURE_NAMES),
            )
        )

    ranked.sort(key=lambda item: item.ann_score, reverse=True)
    return ranked[:top_k]
