from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CategoryOut(BaseModel):
    id: uuid.UUID
    name: str
    color: str
    created_at: datetime
    updated_at: datetime
    checklist_count: int | None = None


class CategoryCreate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    color: str | None = Field(default=None, max_length=20)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    color: str | None = Field(default=None, max_length=20)
