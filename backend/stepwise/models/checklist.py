from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, String, Uuid, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stepwise.db import Base
from stepwise.models.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from stepwise.models.category import Category
    from stepwise.models.step import Step


class Checklist(Base):
    __tablename__ = "checklists"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000))
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="SET NULL"), index=True
    )
    # Set only by the seed command; never changed afterwards.
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, server_default=func.now(), index=True
    )

    category: Mapped["Category | None"] = relationship(back_populates="checklists")
    steps: Mapped[list["Step"]] = relationship(
        back_populates="checklist",
        order_by="Step.order_index",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
