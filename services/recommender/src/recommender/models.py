from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

FACETS = ("skills", "interests", "availability", "personality", "experience")


class PostRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    # Facets are tag-collection-like: None, "a, b", '["a","b"]', ["a"], {"a": true}.
    skills: Any = None
    interests: Any = None
    availability: Any = Field(
        default=None,
        validation_alias=AliasChoices("availability", "available"),
    )
    personality: Any = None
    experience: Any = None
    created_at: str | None = None

    def facet(self, name: str) -> Any:
        return getattr(self, name)


class ProfileRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    department: str | None = None
    year: int | None = Field(default=None, ge=1)


class InteractionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_user_id: str = Field(..., min_length=1)
    to_user_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    created_at: str | None = None
    meta: Any = None


class RecommendFilters(BaseModel):
    skills: str | None = None
    interests: str | None = None
    availability: str | None = None
    desired_role: str | None = None
    experience_level: str | None = None
    preferred_year_min: int | None = None
    preferred_year_max: int | None = None


class MemberRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    post: PostRecord | None = None
    profile: ProfileRecord | None = None

    @property
    def department(self) -> str | None:
        return self.profile.department if self.profile else None

    @property
    def year(self) -> int | None:
        return self.profile.year if self.profile else None


class AnnWeights(BaseModel):
    # NaN or infinite weights would push predict() outside [0, 1].
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    input_size: int = Field(..., ge=1)
    hidden_size: int = Field(..., ge=1)
    w1: tuple[tuple[float, ...], ...]
    b1: tuple[float, ...]
    w2: tuple[float, ...]
    b2: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def default_hidden_size(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("hidden_size") is None:
            return {**data, "hidden_size": data.get("input_size")}
        return data

    @model_validator(mode="after")
    def validate_shapes(self) -> AnnWeights:
        if len(self.w1) != self.hidden_size:
            raise ValueError(f"w1 must have {self.hidden_size} rows, got {len(self.w1)}.")
        for index, row in enumerate(self.w1):
            if len(row) != self.input_size:
                raise ValueError(
                    f"w1 row {index} must have {self.input_size} columns, got {len(row)}."
                )
        if len(self.b1) != self.hidden_size:
            raise ValueError(f"b1 must have {self.hidden_size} entries, got {len(self.b1)}.")
        if len(self.w2) != self.hidden_size:
            raise ValueError(f"w2 must have {self.hidden_size} entries, got {len(self.w2)}.")
        return self


class JaccardRecommendation(BaseModel):
    post_id: str
    user_id: str
    score: float
    skill_score: float
    interest_score: float
    availability_score: float
    personality_score: float
    experience_score: float
    common_skills: list[str] = Field(default_factory=list)
    common_interests: list[str] = Field(default_factory=list)


class AnnRecommendation(BaseModel):
    target_user_id: str
    target_post_id: str
    ann_score: float
    features: list[float]
    feature_names: list[str]
