from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stepwise.db import Base
from stepwise.models.enums import StepStatus
from stepwise.models.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from stepwise.models.checklist import Checklist


DEFAULT_STEP_TITLE = "New Step"
DEFAULT_DURATION_MINUTES = 60


class Step(Base):
    __tablename__ = "steps"
    # Not unique: indices are shifted row by row and may collide mid-operation.
    __table_args__ = (Index("ix_steps_checklist_order", "checklist_id", "order_index"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    checklist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False, default=DEFAULT_STEP_TITLE)
    description: Mapped[str | None] = mapped_column(String(8000))
    duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_DURATION_MINUTES, server_default=str(DEFAULT_DURATION_MINUTES)
    )
    start_datetime: Mapped[datetime | None] = mapped_column(UTCDateTime)
    end_datetime: Mapped[datetime | None] = mapped_column(UTCDateTime)
    status: Mapped[StepStatus] = mapped_column(
        Enum(StepStatus, name="step_status"), nullable=False, default=StepStatus.draft
    )
    comments: Mapped[str | None] = mapped_column(String(8000))
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    checklist: Mapped["Checklist"] = relationship(back_populates="steps")
