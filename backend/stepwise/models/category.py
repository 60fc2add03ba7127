from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stepwise.db import Base
from stepwise.models.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from stepwise.models.checklist import Checklist


DEFAULT_CATEGORY_COLOR = "#6b7280"


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    checklists: Mapped[list["Checklist"]] = relationship(back_populates="category", passive_deletes=True)
