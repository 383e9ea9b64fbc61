"""Rubric configuration schemas (create/update payloads, responses)."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

from app.schemas.common import ItemSource, Severity, ThresholdType


# ---------------------------------------------------------------------------
# Weight validation
# ---------------------------------------------------------------------------


class WeightValidation(BaseModel):
    """Result of checking that enabled category weights sum to 100."""

    is_valid: bool
    total: float
    remaining: float
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ScoringCriterionIn(BaseModel):
    score: int = Field(..., ge=1, le=5)
    criteria_text: str = Field(..., min_length=1)
    source_type: ItemSource = ItemSource.custom
    source_script_id: Optional[UUID] = None


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., pattern=r"^[a-z0-9][a-z0-9_]*$", max_length=100)
    description: Optional[str] = None
    weight: float = Field(..., ge=0, le=100)
    sort_order: Optional[int] = None
    is_enabled: bool = True
    scoring_criteria: List[ScoringCriterionIn] = Field(default_factory=list)
    source_type: ItemSource = ItemSource.custom
    source_script_id: Optional[UUID] = None

    @field_validator("scoring_criteria")
    @classmethod
    def unique_scores(cls, value: List[ScoringCriterionIn]) -> List[ScoringCriterionIn]:
        scores = [c.score for c in value]
        if len(scores) != len(set(scores)):
            raise ValueError("scoring_criteria must contain at most one entry per score")
        return value


class RedFlagIn(BaseModel):
    flag_key: str = Field(..., pattern=r"^[a-z0-9][a-z0-9_]*$", max_length=100)
    display_name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    severity: Severity = Severity.medium
    threshold_type: ThresholdType = ThresholdType.boolean
    threshold_value: Optional[float] = None
    is_enabled: bool = True
    sort_order: Optional[int] = None
    source_type: ItemSource = ItemSource.custom
    source_script_id: Optional[UUID] = None


class _RubricContent(BaseModel):
    categories: Optional[List[CategoryIn]] = None
    red_flags: Optional[List[RedFlagIn]] = None

    @model_validator(mode="after")
    def unique_keys(self) -> Self:
        """Slugs and flag keys are unique within one rubric (HTTP 422)."""
        if self.categories is not None:
            slugs = [c.slug for c in self.categories]
            if len(slugs) != len(set(slugs)):
                raise ValueError("category slugs must be unique within a rubric")
        if self.red_flags is not None:
            keys = [f.flag_key for f in self.red_flags]
            if len(keys) != len(set(keys)):
                raise ValueError("red flag keys must be unique within a rubric")
        return self


class RubricCreate(_RubricContent):
    """Body of ``POST /rubric``.

    Configs are always created as drafts; ``is_draft`` is accepted for
    client compatibility only.  Explicit ``categories``/``red_flags``
    take precedence over the ones copied from ``clone_from_id``.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    clone_from_id: Optional[UUID] = None
    is_draft: Optional[bool] = True


class RubricUpdate(_RubricContent):
    """Body of ``PUT /rubric/{id}``; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ScoringCriterionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    score: int
    criteria_text: str
    source_type: str
    source_script_id: Optional[UUID] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    weight: float
    sort_order: int
    is_enabled: bool
    source_type: str
    source_script_id: Optional[UUID] = None
    scoring_criteria: List[ScoringCriterionOut] = Field(default_factory=list)


class RedFlagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    flag_key: str
    display_name: str
    description: str
    severity: str
    threshold_type: str
    threshold_value: Optional[float] = None
    is_enabled: bool
    sort_order: int
    source_type: str
    source_script_id: Optional[UUID] = None


class RubricConfigOut(BaseModel):
    """A rubric config with its categories, criteria and red flags."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    version: Optional[int] = None
    is_active: bool
    is_draft: bool
    created_at: datetime
    updated_at: datetime
    categories: List[CategoryOut] = Field(default_factory=list)
    red_flags: List[RedFlagOut] = Field(default_factory=list)
    weight_validation: Optional[WeightValidation] = None


class RubricVersionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    version: Optional[int] = None
    is_active: bool
    is_draft: bool
    created_at: datetime
    updated_at: datetime
    category_count: int
    red_flag_count: int
    total_weight: float
