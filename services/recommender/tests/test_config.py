from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from recommender.features import FEATURE_NAMES
from recommender.main import DEFAULT_ANN_WEIGHTS, create_app, parse_ann_weights, parse_flag
from recommender.models import AnnWeights

pytestmark = pytest.mark.unit


def small_weights_json(input_size: int) -> str:
    return json.dumps(
        {
            "input_size": input_size,
            "w1": [[0.5] * input_size],
            "b1": [0.0],
            "w2": [1.0],
            "b2": -0.25,
            "hidden_size": 1,
        }
    )


def test_default_weights_match_feature_vector() -> None:
    assert DEFAULT_ANN_WEIGHTS.input_size == len(FEATURE_NAMES)
    assert DEFAULT_ANN_WEIGHTS.hidden_size == len(FEATURE_NAMES)


def test_parse_ann_weights_accepts_custom_hidden_size() -> None:
    weights = parse_ann_weights(small_weights_json(len(FEATURE_NAMES)))
    assert weights.hidden_size == 1
    assert weights.b2 == -0.25


@pytest.mark.parametrize("raw", ["[]", "not json", '{"input_size": 9}'])
def test_parse_ann_weights_rejects_invalid_payloads(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_ann_weights(raw)


@pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
def test_parse_ann_weights_rejects_non_finite_numbers(token: str) -> None:
    raw = small_weights_json(len(FEATURE_NAMES)).replace('"w2": [1.0]', f'"w2": [{token}]')
    assert token in raw

    with pytest.raises(ValueError):
        parse_ann_weights(raw)


def test_weights_reject_non_finite_values_on_direct_construction() -> None:
    with pytest.raises(ValueError):
        AnnWeights(
            input_size=2,
            w1=[[1.0, 0.0], [0.0, 1.0]],
            b1=[0.0, 0.0],
            w2=[1.0, 1.0],
            b2=float("inf"),
        )
    with pytest.raises(ValueError):
        AnnWeights(input_size=1, w1=[[float("nan")]], b1=[0.0], w2=[1.0])


def test_create_app_fails_fast_on_nan_weights_from_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    raw = small_weights_json(len(FEATURE_NAMES)).replace('"b2": -0.25', '"b2": NaN')
    monkeypatch.setenv("RECOMMENDER_ANN_WEIGHTS_JSON", raw)
    with pytest.raises(ValueError):
        create_app(database_path=str(tmp_path / "db.sqlite3"))


def test_parse_flag() -> None:
    assert parse_flag("", default=True) is True
    assert parse_flag(" Off ", default=True) is False
    assert parse_flag("yes", default=False) is True
    with pytest.raises(ValueError):
        parse_flag("maybe", default=True)


def test_create_app_rejects_weights_for_other_feature_counts(tmp_path: Path) -> None:
    weights = AnnWeights.model_validate(json.loads(small_weights_json(4)))
    with pytest.raises(ValueError, match="expect 4 inputs"):
        create_app(database_path=str(tmp_path / "db.sqlite3"), ann_weights=weights)


def test_create_app_reads_weights_from_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("RECOMMENDER_ANN_WEIGHTS_JSON", small_weights_json(3))
    with pytest.raises(ValueError):
        create_app(database_path=str(tmp_path / "db.sqlite3"))


@pytest.mark.integration
def test_ann_pipeline_can_be_disabled_from_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("RECOMMENDER_ANN_ENABLED", "0")
    app = create_app(database_path=str(tmp_path / "db.sqlite3"))
    with TestClient(app) as client:
        response = client.post("/ai-recommend", json={"user_id": "me"})

    assert response.status_code == 200
    assert response.json()["ann"] is None


@pytest.mark.integration
def test_write_endpoints_require_api_key_when_configured(tmp_path: Path) -> None:
    app = create_app(database_path=str(tmp_path / "secure.sqlite3"), api_key="secret-key")
    with TestClient(app) as client:
        denied = client.post("/profiles", json={"user_id": "u-1", "department": "CS"})
        assert denied.status_code == 401

        wrong = client.post(
            "/posts",
            headers={"x-api-key": "nope"},
            json={"posts": [{"id": "p-1", "user_id": "u-1"}]},
        )
        assert wrong.status_code == 401

        allowed = client.post(
            "/profiles",
            headers={"x-api-key": "secret-key"},
            json={"user_id": "u-1", "department": "CS"},
        )
        assert allowed.status_code == 200

        readable = client.get("/profiles/u-1")
        assert readable.status_code == 200
