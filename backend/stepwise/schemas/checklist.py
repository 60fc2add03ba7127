from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from stepwise.schemas.category import CategoryOut
from stepwise.schemas.step import StepCreate, StepOut


CHECKLIST_TITLE_MAX_LENGTH = 200


class ChecklistStatsOut(BaseModel):
    total_steps: int
    completed_steps: int
    completion_percentage: int
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    total_duration_minutes: int


class ChecklistOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    category_id: uuid.UUID | None = None
    category: CategoryOut | None = None
    is_default: bool
    created_at: datetime
    updated_at: datetime
    steps: list[StepOut] = Field(default_factory=list)
    stats: ChecklistStatsOut


class ChecklistCreate(BaseModel):
    title: str | None = Field(default=None, max_length=CHECKLIST_TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=4000)
    category_id: uuid.UUID | None = None
    steps: list[StepCreate] | None = None


class ChecklistUpdate(BaseModel):
    # Patch semantics: absent fields are untouched, explicit nulls clear.
    title: str | None = Field(default=None, max_length=CHECKLIST_TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=4000)
    category_id: uuid.UUID | None = None
