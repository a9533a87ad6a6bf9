from __future__ import annotations

import asyncio
import json
import logging
import os
import secrets
import sqlite3
import tempfile
import threading
import time
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from common.utils import now_utc_iso
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from recommender.features import FEATURE_NAMES, InteractionStats, build_interaction_stats
from recommender.models import (
    AnnRecommendation,
    AnnWeights,
    InteractionRecord,
    JaccardRecommendation,
    PostRecord,
    ProfileRecord,
    RecommendFilters,
)
from recommender.pipeline import (
    build_member_pool,
    collect_common_skills,
    run_ann_pipeline,
    run_jaccard_pipeline,
)

DEFAULT_DB_PATH = os.path.join(tempfile.gettempdir(), "teammatch", "recommender.sqlite3")
DEFAULT_LIMIT = 20
LOGGER = logging.getLogger("teammatch.recommender")

FACET_COLUMNS = {
    "skills": "skills_json",
    "interests": "interests_json",
    "availability": "availability_json",
    "personality": "personality_json",
    "experience": "experience_json",
}

JACCARD_AUDIT_FIELDS = {"skill_score", "interest_score", "common_skills", "common_interests"}

# Hand-tuned: each hidden unit tracks one feature, skills and interests dominate.
DEFAULT_ANN_WEIGHTS = AnnWeights(
    input_size=len(FEATURE_NAMES),
    w1=[
        [1.0 if column == row else 0.0 for column in range(len(FEATURE_NAMES))]
        for row in range(len(FEATURE_NAMES))
    ],
    b1=[0.0] * len(FEATURE_NAMES),
    w2=[2.4, 1.8, 0.6, 0.6, 0.6, 0.8, 0.6, 1.2, 0.4],
    b2=-3.0,
)


def parse_ann_weights(raw: str) -> AnnWeights:
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("RECOMMENDER_ANN_WEIGHTS_JSON must be a JSON object.")
    return AnnWeights.model_validate(parsed)


def parse_flag(raw: str, default: bool) -> bool:
    value = raw.strip().lower()
    if not value:
        return default
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Cannot interpret {raw!r} as a boolean flag.")


class UpsertPostsRequest(BaseModel):
    posts: list[PostRecord] = Field(default_factory=list)


class UpsertPostsResponse(BaseModel):
    updated: int


class AiRecommendRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    filters: RecommendFilters | None = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=100)
    include_ann: bool = True


class AiRecommendResponse(BaseModel):
    run_id: int
    user_id: str
    generated_at: str
    count: int
    recommended_skills: list[str]
    jaccard: list[JaccardRecommendation]
    ann: list[AnnRecommendation] | None = None


class RecommendationRun(BaseModel):
    run_id: int
    user_id: str
    generated_at: str
    jaccard_count: int
    ann_count: int


class RecommendationHistoryResponse(BaseModel):
    runs: list[RecommendationRun]


class RecommendationItem(BaseModel):
    pipeline: str
    rank: int
    target_user_id: str
    target_post_id: str
    score: float
    details: dict[str, Any] = Field(default_factory=dict)


class RecommendationRunDetail(RecommendationRun):
    filters: RecommendFilters | None = None
    recommended_skills: list[str]
    items: list[RecommendationItem]


class MetricsSnapshot(BaseModel):
    generated_at: str
    totals: dict[str, int]
    endpoints: dict[str, dict[str, float | int]]


@dataclass
class EndpointStats:
    count: int = 0
    total_ms: float = 0.0
    slowest_ms: float = 0.0
    status_classes: Counter[str] = field(default_factory=Counter)

    def as_dict(self) -> dict[str, float | int]:
        return {
            "count": self.count,
            "avg_ms": round(self.total_ms / self.count, 3) if self.count else 0.0,
            "slowest_ms": round(self.slowest_ms, 3),
            **self.status_classes,
        }


class MetricsStore:
    """In-process request counters keyed by ``"<METHOD> <path>"``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._errors = 0
        self._endpoints: dict[str, EndpointStats] = {}

    def observe(self, *, method: str, path: str, status_code: int, duration_ms: float) -> None:
        with self._lock:
            self._requests += 1
            if status_code >= 400:
                self._errors += 1
            stats = self._endpoints.setdefault(f"{method} {path}", EndpointStats())
            stats.count += 1
            stats.total_ms += duration_ms
            stats.slowest_ms = max(stats.slowest_ms, duration_ms)
            stats.status_classes[f"{status_code // 100}xx"] += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                generated_at=now_utc_iso(),
                totals={"requests": self._requests, "errors": self._errors},
                endpoints={key: stats.as_dict() for key, stats in self._endpoints.items()},
            )


class RecommenderRepository:
    def __init__(self, database_path: str) -> None:
        self.database_path = Path(database_path)
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("Database connection is not initialized")
        return self._connection

    def connect(self) -> None:
        with self._lock:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.database_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys=ON")
            self._connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS posts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    skills_json TEXT NOT NULL DEFAULT 'null',
                    interests_json TEXT NOT NULL DEFAULT 'null',
                    availability_json TEXT NOT NULL DEFAULT 'null',
                    personality_json TEXT NOT NULL DEFAULT 'null',
                    experience_json TEXT NOT NULL DEFAULT 'null',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts(user_id);

                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    department TEXT,
                    year INTEGER,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    from_user_id TEXT NOT NULL,
                    to_user_id TEXT NOT NULL,
                    action TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    meta_json TEXT NOT NULL DEFAULT 'null'
                );

                CREATE INDEX IF NOT EXISTS idx_interactions_from_user
                    ON interactions(from_user_id);

                CREATE TABLE IF NOT EXISTS recommendation_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    filters_json TEXT NOT NULL,
                    recommended_skills_json TEXT NOT NULL,
                    generated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS recommendation_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id INTEGER NOT NULL REFERENCES recommendation_runs(id) ON DELETE CASCADE,
                    pipeline TEXT NOT NULL,
                    target_user_id TEXT NOT NULL,
                    target_post_id TEXT NOT NULL,
                    score REAL NOT NULL,
                    rank INTEGER NOT NULL,
                    details_json TEXT NOT NULL DEFAULT '{}'
                );
                """
            )
            self._connection.commit()

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None

    def upsert_posts(self, posts: list[PostRecord]) -> int:
        # One transaction: a post that fails to store discards the whole batch.
        with self._lock, self.connection:
            now = now_utc_iso()
            for post in posts:
                facet_values = [
                    json.dumps(post.facet(facet), default=list) for facet in FACET_COLUMNS
                ]
                self.connection.execute(
                    """
                    INSERT INTO posts (
                        id,
                        user_id,
                        skills_json,
                        interests_json,
                        availability_json,
                        personality_json,
                        experience_json,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        user_id = excluded.user_id,
                        skills_json = excluded.skills_json,
                        interests_json = excluded.interests_json,
                        availability_json = excluded.availability_json,
                        personality_json = excluded.personality_json,
                        experience_json = excluded.experience_json,
                        created_at = COALESCE(?, posts.created_at),
                        updated_at = excluded.updated_at
                    """,
                    (
                        post.id,
                        post.user_id,
                        *facet_values,
                        post.created_at or now,
                        now,
                        post.created_at,
                    ),
                )
            return len(posts)

    def list_posts(self, limit: int | None = None) -> list[PostRecord]:
        with self._lock:
            query = """
                SELECT
                    id,
                    user_id,
                    skills_json,
                    interests_json,
                    availability_json,
                    personality_json,
                    experience_json,
                    created_at
                FROM posts
                ORDER BY created_at DESC, rowid ASC
            """
            params: tuple[Any, ...] = ()
            if limit is not None:
                query += " LIMIT ?"
                params = (limit,)
            rows = self.connection.execute(query, params).fetchall()
            return [self._to_post(row) for row in rows]

    def upsert_profile(self, profile: ProfileRecord) -> ProfileRecord:
        with self._lock:
            self.connection.execute(
                """
                INSERT INTO profiles (user_id, department, year, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    department = excluded.department,
                    year = excluded.year,
                    updated_at = excluded.updated_at
                """,
                (profile.user_id, profile.department, profile.year, now_utc_iso()),
            )
            self.connection.commit()
            return profile

    def get_profile(self, user_id: str) -> ProfileRecord | None:
        with self._lock:
            row = self.connection.execute(
                "SELECT user_id, department, year FROM profiles WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            if row is None:
                return None
            return ProfileRecord(**dict(row))

    def list_profiles(self) -> list[ProfileRecord]:
        with self._lock:
            rows = self.connection.execute(
                "SELECT user_id, department, year FROM profiles ORDER BY user_id"
            ).fetchall()
            return [ProfileRecord(**dict(row)) for row in rows]

    def record_interaction(self, interaction: InteractionRecord) -> InteractionRecord:
        with self._lock:
            created_at = interaction.created_at or now_utc_iso()
            self.connection.execute(
                """
                INSERT INTO interactions (from_user_id, to_user_id, action, created_at, meta_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    interaction.from_user_id,
                    interaction.to_user_id,
                    interaction.action,
                    created_at,
                    json.dumps(interaction.meta),
                ),
            )
            self.connection.commit()
            return interaction.model_copy(update={"created_at": created_at})

    def list_interactions(self, from_user_id: str) -> list[InteractionRecord]:
        with self._lock:
            rows = self.connection.execute(
                """
                SELECT from_user_id, to_user_id, action, created_at, meta_json
                FROM interactions
                WHERE from_user_id = ?
                ORDER BY id ASC
                """,
                (from_user_id,),
            ).fetchall()
            return [
                InteractionRecord(
                    from_user_id=row["from_user_id"],
                    to_user_id=row["to_user_id"],
                    action=row["action"],
                    created_at=row["created_at"],
                    meta=json.loads(row["meta_json"]),
                )
                for row in rows
            ]

    def record_recommendations(
        self,
        *,
        user_id: str,
        filters: RecommendFilters | None,
        recommended_skills: list[str],
        jaccard: list[JaccardRecommendation],
        ann: list[AnnRecommendation] | None,
    ) -> tuple[int, str]:
        items = [
            (
                "jaccard",
                item.user_id,
                item.post_id,
                item.score,
                rank,
                item.model_dump_json(include=JACCARD_AUDIT_FIELDS),
            )
            for rank, item in enumerate(jaccard, start=1)
        ]
        items.extend(
            (
                "ann",
                item.target_user_id,
                item.target_post_id,
                item.ann_score,
                rank,
                json.dumps(dict(zip(item.feature_names, item.features))),
            )
            for rank, item in enumerate(ann or [], start=1)
        )
        # The run and its items are stored together or not at all.
        with self._lock, self.connection:
            generated_at = now_utc_iso()
            cursor = self.connection.execute(
                """
                INSERT INTO recommendation_runs (
                    user_id,
                    filters_json,
                    recommended_skills_json,
                    generated_at
                )
                VALUES (?, ?, ?, ?)
                """,
                (
                    user_id,
                    filters.model_dump_json() if filters else "null",
                    json.dumps(recommended_skills),
                    generated_at,
                ),
            )
            run_id = int(cursor.lastrowid)
            self.connection.executemany(
                """
                INSERT INTO recommendation_items (
                    run_id,
                    pipeline,
                    target_user_id,
                    target_post_id,
                    score,
                    rank,
                    details_json
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [(run_id, *item) for item in items],
            )
            return run_id, generated_at

    def get_recommendation_run(self, run_id: int) -> RecommendationRunDetail | None:
        with self._lock:
            run = self.connection.execute(
                """
                SELECT id, user_id, filters_json, recommended_skills_json, generated_at
                FROM recommendation_runs
                WHERE id = ?
                """,
                (run_id,),
            ).fetchone()
            if run is None:
                return None
            rows = self.connection.execute(
                """
                SELECT pipeline, rank, target_user_id, target_post_id, score, details_json
                FROM recommendation_items
                WHERE run_id = ?
                ORDER BY pipeline DESC, rank ASC
                """,
                (run_id,),
            ).fetchall()

        items = [
            RecommendationItem(
                pipeline=row["pipeline"],
                rank=row["rank"],
                target_user_id=row["target_user_id"],
                target_post_id=row["target_post_id"],
                score=row["score"],
                details=json.loads(row["details_json"]),
            )
            for row in rows
        ]
        filters = json.loads(run["filters_json"])
        return RecommendationRunDetail(
            run_id=run["id"],
            user_id=run["user_id"],
            generated_at=run["generated_at"],
            jaccard_count=sum(1 for item in items if item.pipeline == "jaccard"),
            ann_count=sum(1 for item in items if item.pipeline == "ann"),
            filters=RecommendFilters.model_validate(filters) if filters else None,
            recommended_skills=json.loads(run["recommended_skills_json"]),
            items=items,
        )

    def list_recommendation_runs(
        self,
        limit: int,
        user_id: str | None = None,
    ) -> list[RecommendationRun]:
        with self._lock:
            query = """
                SELECT
                    r.id AS run_id,
                    r.user_id AS user_id,
                    r.generated_at AS generated_at,
                    COALESCE(SUM(CASE WHEN i.pipeline = 'jaccard' THEN 1 ELSE 0 END), 0)
                        AS jaccard_count,
                    COALESCE(SUM(CASE WHEN i.pipeline = 'ann' THEN 1 ELSE 0 END), 0)
                        AS ann_count
                FROM recommendation_runs r
                LEFT JOIN recommendation_items i ON i.run_id = r.id
            """
            params: list[Any] = []
            if user_id:
                query += " WHERE r.user_id = ?"
                params.append(user_id)
            query += " GROUP BY r.id, r.user_id, r.generated_at ORDER BY r.id DESC LIMIT ?"
            params.append(limit)
            cursor = self.connection.execute(query, tuple(params))
            return [RecommendationRun(**dict(row)) for row in cursor.fetchall()]

    def _to_post(self, row: sqlite3.Row) -> PostRecord:
        facets = {facet: json.loads(row[column]) for facet, column in FACET_COLUMNS.items()}
        return PostRecord(
            id=row["id"],
            user_id=row["user_id"],
            created_at=row["created_at"],
            **facets,
        )


def create_app(
    *,
    database_path: str | None = None,
    api_key: str | None = None,
    ann_weights: AnnWeights | None = None,
    ann_enabled: bool | None = None,
) -> FastAPI:
    resolved_path = database_path or os.getenv("RECOMMENDER_DB_PATH", DEFAULT_DB_PATH)
    resolved_api_key = (api_key or os.getenv("RECOMMENDER_API_KEY", "")).strip() or None
    if ann_enabled is None:
        ann_enabled = parse_flag(os.getenv("RECOMMENDER_ANN_ENABLED", ""), default=True)

    resolved_weights = ann_weights
    if resolved_weights is None:
        raw_weights = os.getenv("RECOMMENDER_ANN_WEIGHTS_JSON", "").strip()
        resolved_weights = parse_ann_weights(raw_weights) if raw_weights else DEFAULT_ANN_WEIGHTS
    if resolved_weights.input_size != len(FEATURE_NAMES):
        raise ValueError(
            f"ANN weights expect {resolved_weights.input_size} inputs, "
            f"feature vectors have {len(FEATURE_NAMES)}."
        )

    repository = RecommenderRepository(database_path=resolved_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(repository.connect)
        app.state.repository = repository
        app.state.metrics = MetricsStore()
        app.state.ann_weights = resolved_weights if ann_enabled else None
        try:
            yield
        finally:
            await run_in_threadpool(repository.close)

    app = FastAPI(title="TeamMatch Recommender", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        error: Exception | None = None

        try:
            response = await call_next(request)
        except Exception as exc:
            error = exc
            response = JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
            )

        duration_ms = (time.perf_counter() - started) * 1000
        request.app.state.metrics.observe(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        response.headers["x-request-id"] = request_id
        event = {
            "event": "request_complete",
            "request_id": request_id,
            "route": f"{request.method} {request.url.path}",
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 3),
        }
        if error is None:
            LOGGER.info(json.dumps(event))
        else:
            LOGGER.error(json.dumps({**event, "error": repr(error)}), exc_info=error)
        return response

    def require_api_key(request: Request) -> None:
        if resolved_api_key is None:
            return
        provided = request.headers.get("x-api-key", "")
        if not provided or not secrets.compare_digest(provided, resolved_api_key):
            LOGGER.warning(
                json.dumps(
                    {
                        "event": "unauthorized",
                        "request_id": getattr(request.state, "request_id", None),
                        "path": request.url.path,
                    }
                )
            )
            raise HTTPException(status_code=401, detail="Unauthorized")

    async def build_recommendations(
        request: Request,
        *,
        user_id: str,
        filters: RecommendFilters | None,
        limit: int,
        include_ann: bool,
    ) -> AiRecommendResponse:
        repo: RecommenderRepository = request.app.state.repository
        weights: AnnWeights | None = request.app.state.ann_weights
        run_ann = include_ann and weights is not None

        posts = await run_in_threadpool(repo.list_posts)
        profiles = await run_in_threadpool(repo.list_profiles)
        requester, pool = build_member_pool(user_id, posts, profiles)

        stats: dict[str, InteractionStats] = {}
        if run_ann:
            interactions = await run_in_threadpool(repo.list_interactions, user_id)
            stats = build_interaction_stats(interactions, from_user_id=user_id)

        jaccard_call = run_in_threadpool(
            run_jaccard_pipeline,
            requester,
            pool,
            top_k=limit,
            filters=filters,
        )
        ann: list[AnnRecommendation] | None = None
        if run_ann:
            # The pipelines share no mutable state.
            jaccard, ann = await asyncio.gather(
                jaccard_call,
                run_in_threadpool(
                    run_ann_pipeline,
                    requester,
                    pool,
                    weights,
                    stats,
                    top_k=limit,
                    filters=filters,
                ),
            )
        else:
            jaccard = await jaccard_call

        recommended_skills = collect_common_skills(jaccard)
        run_id, generated_at = await run_in_threadpool(
            repo.record_recommendations,
            user_id=user_id,
            filters=filters,
            recommended_skills=recommended_skills,
            jaccard=jaccard,
            ann=ann,
        )
        LOGGER.info(
            json.dumps(
                {
                    "event": "recommendation_run",
                    "request_id": getattr(request.state, "request_id", None),
                    "run_id": run_id,
                    "user_id": user_id,
                    "has_post": requester is not None and requester.post is not None,
                    "pool_size": len(pool),
                    "jaccard_count": len(jaccard),
                    "ann_count": len(ann) if ann is not None else None,
                }
            )
        )
        return AiRecommendResponse(
            run_id=run_id,
            user_id=user_id,
            generated_at=generated_at,
            count=len(jaccard),
            recommended_skills=recommended_skills,
            jaccard=jaccard,
            ann=ann,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "recommender"}

    @app.get("/metrics", response_model=MetricsSnapshot)
    async def metrics(request: Request) -> MetricsSnapshot:
        return request.app.state.metrics.snapshot()

    @app.post("/posts", response_model=UpsertPostsResponse)
    async def upsert_posts(payload: UpsertPostsRequest, request: Request) -> UpsertPostsResponse:
        require_api_key(request)
        updated = await run_in_threadpool(request.app.state.repository.upsert_posts, payload.posts)
        return UpsertPostsResponse(updated=updated)

    @app.get("/posts", response_model=list[PostRecord])
    async def list_posts(
        request: Request,
        limit: int = Query(default=50, ge=1, le=500),
    ) -> list[PostRecord]:
        return await run_in_threadpool(request.app.state.repository.list_posts, limit)

    @app.post("/profiles", response_model=ProfileRecord)
    async def upsert_profile(payload: ProfileRecord, request: Request) -> ProfileRecord:
        require_api_key(request)
        return await run_in_threadpool(request.app.state.repository.upsert_profile, payload)

    @app.get("/profiles/{user_id}", response_model=ProfileRecord)
    async def get_profile(user_id: str, request: Request) -> ProfileRecord:
        profile = await run_in_threadpool(request.app.state.repository.get_profile, user_id)
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile

    @app.post("/interactions", response_model=InteractionRecord)
    async def record_interaction(
        payload: InteractionRecord,
        request: Request,
    ) -> InteractionRecord:
        require_api_key(request)
        return await run_in_threadpool(request.app.state.repository.record_interaction, payload)

    @app.get("/interactions", response_model=list[InteractionRecord])
    async def list_interactions(
        request: Request,
        from_user_id: str = Query(..., min_length=1),
    ) -> list[InteractionRecord]:
        return await run_in_threadpool(
            request.app.state.repository.list_interactions,
            from_user_id,
        )

    @app.get("/recommendations/history", response_model=RecommendationHistoryResponse)
    async def recommendation_history(
        request: Request,
        user_id: str | None = None,
        limit: int = Query(default=25, ge=1, le=200),
    ) -> RecommendationHistoryResponse:
        runs = await run_in_threadpool(
            request.app.state.repository.list_recommendation_runs,
            limit,
            user_id,
        )
        return RecommendationHistoryResponse(runs=runs)

    @app.get("/recommendations/{run_id}", response_model=RecommendationRunDetail)
    async def recommendation_run(run_id: int, request: Request) -> RecommendationRunDetail:
        run = await run_in_threadpool(request.app.state.repository.get_recommendation_run, run_id)
        if run is None:
            raise HTTPException(status_code=404, detail="Recommendation run not found")
        return run

    @app.post("/ai-recommend", response_model=AiRecommendResponse)
    async def ai_recommend(payload: AiRecommendRequest, request: Request) -> AiRecommendResponse:
        return await build_recommendations(
            request,
            user_id=payload.user_id,
            filters=payload.filters,
            limit=payload.limit,
            include_ann=payload.include_ann,
        )

    @app.get("/ai-recommend", response_model=AiRecommendResponse)
    async def ai_recommend_for_user(
        request: Request,
        user_id: str = Query(..., min_length=1),
        limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=100),
    ) -> AiRecommendResponse:
        return await build_recommendations(
            request,
            user_id=user_id,
            filters=None,
            limit=limit,
            include_ann=True,
        )

    return app


app = create_app()
