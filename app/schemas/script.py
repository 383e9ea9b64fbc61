from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.core.constants import PRODUCT_TYPE_LABELS
from app.schemas.common import ProductType, SyncStatus


class ScriptCreate(BaseModel):
    """Upload payload: script text already extracted from the document."""

    name: str = Field(..., min_length=1, max_length=255)
    product_type: ProductType
    content: str = Field(..., min_length=1)
    file_name: Optional[str] = Field(None, max_length=255)
    version_notes: Optional[str] = None
    uploaded_by: Optional[str] = None
    activate: bool = False


class ScriptUpdate(BaseModel):
    """Body of ``PUT /scripts/{id}``; only metadata is editable."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    version_notes: Optional[str] = None


class ScriptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    product_type: ProductType
    version: int
    file_name: Optional[str] = None
    version_notes: Optional[str] = None
    is_active: bool
    uploaded_by: Optional[str] = None
    linked_rubric_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    sync_status: Optional[SyncStatus] = None

    @computed_field
    @property
    def product_label(self) -> str:
        return PRODUCT_TYPE_LABELS[self.product_type.value]


class ScriptOut(ScriptSummary):
    content: str
