from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from recommender.features import FEATURE_NAMES
from recommender.main import create_app

pytestmark = pytest.mark.integration

POSTS = [
    {"id": "p-me", "user_id": "me", "skills": ["React", "TS"], "interests": ["web"]},
    {"id": "p-a", "user_id": "a", "skills": ["React", "TS", "Figma"], "interests": ["web"]},
    {"id": "p-b", "user_id": "b", "skills": ["Python"], "interests": ["ml"]},
    {"id": "p-c", "user_id": "c", "skills": '["Python", "SQL"]', "interests": "data"},
]
PROFILES = [
    {"user_id": "me", "department": "CS", "year": 2},
    {"user_id": "a", "department": "CS", "year": 2},
    {"user_id": "b", "department": "EE", "year": 4},
    {"user_id": "c", "department": "CS", "year": 1},
]


def seed(client: TestClient) -> None:
    assert client.post("/posts", json={"posts": POSTS}).status_code == 200
    for profile in PROFILES:
        assert client.post("/profiles", json=profile).status_code == 200
    for action in ("view", "chat", "chat", "team_join", "wave"):
        response = client.post(
            "/interactions",
            json={"from_user_id": "me", "to_user_id": "b", "action": action},
        )
        assert response.status_code == 200


@pytest.fixture
def client(tmp_path: Path):
    db_path = tmp_path / "recommender.sqlite3"
    app = create_app(database_path=str(db_path))
    with TestClient(app) as test_client:
        seed(test_client)
        yield test_client


def test_recommend_returns_both_rankings(client: TestClient) -> None:
    response = client.post("/ai-recommend", json={"user_id": "me"})

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == "me"
    assert body["run_id"] >= 1
    assert body["count"] == 1
    assert [item["post_id"] for item in body["jaccard"]] == ["p-a"]
    assert body["jaccard"][0]["skill_score"] == pytest.approx(2 / 3)
    assert body["recommended_skills"] == ["React", "TS"]

    ann = body["ann"]
    assert {item["target_user_id"] for item in ann} == {"a", "b", "c"}
    assert all(0.0 <= item["ann_score"] <= 1.0 for item in ann)
    assert all(item["feature_names"] == list(FEATURE_NAMES) for item in ann)
    scores = [item["ann_score"] for item in ann]
    assert scores == sorted(scores, reverse=True)

    features_b = next(item["features"] for item in ann if item["target_user_id"] == "b")
    assert features_b[5] == 0.0
    assert features_b[6] == pytest.approx(0.5)
    assert features_b[7] == pytest.approx((0.1 + 0.8 + 0.7) / 10)
    assert features_b[8] == 1.0


def test_filters_override_requester_post(client: TestClient) -> None:
    response = client.post(
        "/ai-recommend",
        json={
            "user_id": "me",
            "filters": {"skills": "Python, SQL", "interests": "", "preferred_year_min": 2},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [item["post_id"] for item in body["jaccard"]] == ["p-c", "p-a", "p-b"]
    top = body["jaccard"][0]
    assert top["skill_score"] == 1.0
    assert top["common_skills"] == ["Python", "SQL"]

    features_c = next(item["features"] for item in body["ann"] if item["target_user_id"] == "c")
    assert features_c[6] == pytest.approx(0.75 * 0.6)


def test_limit_truncates_results(client: TestClient) -> None:
    response = client.get("/ai-recommend", params={"user_id": "me", "limit": 1})

    assert response.status_code == 200
    assert len(response.json()["ann"]) == 1


def test_requester_without_post_gets_empty_lists(client: TestClient) -> None:
    response = client.post("/ai-recommend", json={"user_id": "newcomer"})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 0
    assert body["jaccard"] == []
    assert body["ann"] == []
    assert body["recommended_skills"] == []


def test_ann_can_be_skipped_per_request(client: TestClient) -> None:
    response = client.post("/ai-recommend", json={"user_id": "me", "include_ann": False})

    assert response.status_code == 200
    assert response.json()["ann"] is None


def test_invalid_limit_is_rejected(client: TestClient) -> None:
    response = client.post("/ai-recommend", json={"user_id": "me", "limit": 0})
    assert response.status_code == 422

    missing_user = client.get("/ai-recommend")
    assert missing_user.status_code == 422
