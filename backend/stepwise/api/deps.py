from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stepwise.db import get_db
from stepwise.services.categories import CategoryService
from stepwise.services.checklists import ChecklistService


async def get_checklist_service(db: AsyncSession = Depends(get_db)) -> ChecklistService:
    return ChecklistService(db)


async def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(db)
