from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stepwise.models.category import DEFAULT_CATEGORY_COLOR, Category
from stepwise.models.checklist import Checklist
from stepwise.schemas.category import CategoryCreate, CategoryUpdate
from stepwise.services.errors import BadRequestError, ConflictError, NotFoundError


logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, category_id: uuid.UUID) -> Category:
        category = (await self.db.execute(select(Category).where(Category.id == category_id))).scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def _ensure_unique_name(self, name: str, *, exclude_id: uuid.UUID | None = None) -> None:
        stmt = select(Category.id).where(Category.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if (await self.db.execute(stmt)).first() is not None:
            raise ConflictError("Category name already exists")

    async def checklist_count(self, category_id: uuid.UUID) -> int:
        stmt = select(func.count(Checklist.id)).where(Checklist.category_id == category_id)
        return int((await self.db.execute(stmt)).scalar_one())

    async def list_categories(self) -> list[tuple[Category, int]]:
        stmt = (
            select(Category, func.count(Checklist.id))
            .outerjoin(Checklist, Checklist.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.name)
        )
        return [(category, int(count)) for category, count in (await self.db.execute(stmt)).all()]

    async def create_category(self, payload: CategoryCreate) -> Category:
        name = (payload.name or "").strip()
        if not name:
            raise BadRequestError("Category name is required")
        await self._ensure_unique_name(name)

        category = Category(name=name, color=payload.color or DEFAULT_CATEGORY_COLOR)
        self.db.add(category)
        await self.db.commit()
        logger.info("Created category %s (%s)", category.id, name)
        return category

    async def update_category(self, category_id: uuid.UUID, payload: CategoryUpdate) -> Category:
        category = await self._get(category_id)

        # Blank values are ignored rather than clearing the field.
        name = (payload.name or "").strip()
        if name and name != category.name:
            await self._ensure_unique_name(name, exclude_id=category.id)
            category.name = name
        if payload.color:
            category.color = payload.color

        await self.db.commit()
        return category

    async def delete_category(self, category_id: uuid.UUID) -> None:
        category = await self._get(category_id)
        # Checklists keep existing; the database nulls their category_id.
        await self.db.delete(category)
        await self.db.commit()
        logger.info("Deleted category %s", category_id)
