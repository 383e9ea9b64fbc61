"""Script-sync schemas: the ProposedChanges document and sync-log payloads.

Every proposed change is a tagged union on ``change_type`` so handlers
can dispatch exhaustively.  Each change exposes a stable ``key`` that
approval requests use to pick individual changes.
"""

import re
from datetime import datetime
from typing import Annotated, Iterator, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from app.core.constants import HIGH_CONFIDENCE_THRESHOLD
from app.schemas.common import Severity, SyncStatus


# ---------------------------------------------------------------------------
# Proposed changes
# ---------------------------------------------------------------------------

# Same shape the rubric editor accepts for slugs and flag keys
_KEY_PATTERN = r"^[a-z0-9][a-z0-9_]*$"
_KEY_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_key(value):
    """Lowercase a model-proposed slug or flag key and turn dashes and spaces into ``_``."""
    if isinstance(value, str):
        return _KEY_SEPARATORS.sub("_", value.strip().lower())
    return value


ProposedKey = Annotated[
    str,
    Field(pattern=_KEY_PATTERN, max_length=100),
    BeforeValidator(normalize_key),
]


class _ProposedChange(BaseModel):
    reason: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1)
    script_reference: Optional[str] = None


class _CategoryChange(_ProposedChange):
    category_slug: ProposedKey
    current_name: Optional[str] = None
    proposed_name: Optional[str] = Field(None, max_length=255)
    current_weight: Optional[float] = Field(None, ge=0, le=100)
    proposed_weight: Optional[float] = Field(None, ge=0, le=100)
    current_description: Optional[str] = None
    proposed_description: Optional[str] = None

    @property
    def key(self) -> str:
        return f"category:{self.category_slug}:{self.change_type}"


class CategoryAdd(_CategoryChange):
    change_type: Literal["add"]


class CategoryModify(_CategoryChange):
    change_type: Literal["modify"]


class CategoryRemove(_CategoryChange):
    change_type: Literal["remove"]


class _CriteriaChange(_ProposedChange):
    category_slug: ProposedKey
    score: int = Field(..., ge=1, le=5)
    current_text: Optional[str] = None
    proposed_text: Optional[str] = None

    @property
    def key(self) -> str:
        return f"criteria:{self.category_slug}:{self.score}"


class CriteriaAdd(_CriteriaChange):
    change_type: Literal["add"]


class CriteriaModify(_CriteriaChange):
    change_type: Literal["modify"]


class CriteriaRemove(_CriteriaChange):
    change_type: Literal["remove"]


class _RedFlagChange(_ProposedChange):
    flag_key: ProposedKey
    current_display_name: Optional[str] = None
    proposed_display_name: Optional[str] = Field(None, max_length=255)
    current_description: Optional[str] = None
    proposed_description: Optional[str] = None
    current_severity: Optional[Severity] = None
    proposed_severity: Optional[Severity] = None

    @property
    def key(self) -> str:
        return f"red_flag:{self.flag_key}:{self.change_type}"


class RedFlagAdd(_RedFlagChange):
    change_type: Literal["add"]


class RedFlagModify(_RedFlagChange):
    change_type: Literal["modify"]


class RedFlagRemove(_RedFlagChange):
    change_type: Literal["remove"]


CategoryChange = Annotated[
    Union[CategoryAdd, CategoryModify, CategoryRemove],
    Field(discriminator="change_type"),
]
CriteriaChange = Annotated[
    Union[CriteriaAdd, CriteriaModify, CriteriaRemove],
    Field(discriminator="change_type"),
]
RedFlagChange = Annotated[
    Union[RedFlagAdd, RedFlagModify, RedFlagRemove],
    Field(discriminator="change_type"),
]


class ProposedChanges(BaseModel):
    """Structured diff between a sales script and a rubric snapshot."""

    summary: str = Field(..., min_length=1)
    analysis_notes: Optional[str] = None
    category_changes: List[CategoryChange] = Field(default_factory=list)
    criteria_changes: List[CriteriaChange] = Field(default_factory=list)
    red_flag_changes: List[RedFlagChange] = Field(default_factory=list)
    total_changes: int = 0
    high_confidence_count: int = 0

    def iter_changes(self) -> Iterator[_ProposedChange]:
        yield from self.category_changes
        yield from self.criteria_changes
        yield from self.red_flag_changes

    def with_counts(self) -> "ProposedChanges":
        """Return a copy whose counters match the change lists."""
        changes = list(self.iter_changes())
        return self.model_copy(
            update={
                "total_changes": len(changes),
                "high_confidence_count": sum(
                    1 for c in changes if c.confidence >= HIGH_CONFIDENCE_THRESHOLD
                ),
            }
        )


# ---------------------------------------------------------------------------
# Sync log payloads
# ---------------------------------------------------------------------------


class SyncStartResponse(BaseModel):
    sync_log_id: UUID
    status: SyncStatus


class SyncLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    script_id: UUID
    rubric_config_id: UUID
    status: SyncStatus
    changes_proposed: Optional[ProposedChanges] = None
    changes_approved: Optional[ProposedChanges] = None
    changes_rejected: Optional[ProposedChanges] = None
    error_message: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    created_at: datetime


class ApplyChangesRequest(BaseModel):
    """Body of ``POST /scripts/sync/{id}/apply``.

    Each list holds change keys (``category:objection_handling:modify``,
    ``criteria:needs_discovery:5``, ``red_flag:rushed_closing:add``).
    Purely numeric entries are read as positions in the proposal list.
    """

    approved_category_changes: List[str] = Field(default_factory=list)
    approved_criteria_changes: List[str] = Field(default_factory=list)
    approved_red_flag_changes: List[str] = Field(default_factory=list)
    approved_by: Optional[str] = None


class RejectChangesRequest(BaseModel):
    rejected_by: Optional[str] = None
