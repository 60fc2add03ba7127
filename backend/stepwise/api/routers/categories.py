from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from stepwise.api.deps import get_category_service
from stepwise.api.serializers import category_to_out
from stepwise.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from stepwise.services.categories import CategoryService


router = APIRouter()


@router.get("", response_model=list[CategoryOut])
async def list_categories(service: CategoryService = Depends(get_category_service)) -> list[CategoryOut]:
    return [category_to_out(category, count) for category, count in await service.list_categories()]


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
) -> CategoryOut:
    category = await service.create_category(payload)
    return category_to_out(category, 0)


@router.put("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
) -> CategoryOut:
    category = await service.update_category(category_id, payload)
    return category_to_out(category, await service.checklist_count(category.id))


@router.delete("/{category_id}", status_code=status.HTTP_200_OK)
async def delete_category(
    category_id: uuid.UUID,
    service: CategoryService = Depends(get_category_service),
) -> dict:
    await service.delete_category(category_id)
    return {"ok": True}
