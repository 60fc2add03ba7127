from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from stepwise.models.enums import StepStatus


# Bounds of the INTEGER and String columns in models/step.py.
MAX_INT = 2**31 - 1
STEP_TEXT_MAX_LENGTH = 8000


class StepOut(BaseModel):
    id: uuid.UUID
    checklist_id: uuid.UUID
    title: str
    description: str | None = None
    duration_minutes: int
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    status: StepStatus
    comments: str | None = None
    order_index: int
    created_at: datetime
    updated_at: datetime


class StepCreate(BaseModel):
    """Step definition for creation, batch creation and CSV import.

    Omitted fields fall back to the model defaults; ``model_fields_set`` tells
    which ones the caller actually supplied.
    """

    title: str | None = Field(default=None, max_length=300)
    description: str | None = Field(default=None, max_length=STEP_TEXT_MAX_LENGTH)
    duration_minutes: int | None = Field(default=None, ge=0, le=MAX_INT)
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    status: StepStatus | None = None
    comments: str | None = Field(default=None, max_length=STEP_TEXT_MAX_LENGTH)
    order_index: int | None = Field(default=None, ge=0, le=MAX_INT)


class StepUpdate(BaseModel):
    # Patch semantics: absent fields are untouched, explicit nulls clear.
    title: str | None = Field(default=None, max_length=300)
    description: str | None = Field(default=None, max_length=STEP_TEXT_MAX_LENGTH)
    duration_minutes: int | None = Field(default=None, ge=0, le=MAX_INT)
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    status: StepStatus | None = None
    comments: str | None = Field(default=None, max_length=STEP_TEXT_MAX_LENGTH)


class StepReorder(BaseModel):
    checklist_id: uuid.UUID
    step_ids: list[uuid.UUID]
