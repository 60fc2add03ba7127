from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from stepwise.api.deps import get_checklist_service
from stepwise.api.routers.checklists import OkOut
from stepwise.api.serializers import step_to_out
from stepwise.schemas.step import StepOut, StepReorder, StepUpdate
from stepwise.services.checklists import ChecklistService


router = APIRouter()


@router.post("/reorder", response_model=list[StepOut])
async def reorder_steps(
    payload: StepReorder,
    service: ChecklistService = Depends(get_checklist_service),
) -> list[StepOut]:
    steps = await service.reorder_steps(payload.checklist_id, payload.step_ids)
    return [step_to_out(step) for step in steps]


@router.put("/{step_id}", response_model=StepOut)
async def update_step(
    step_id: uuid.UUID,
    payload: StepUpdate,
    service: ChecklistService = Depends(get_checklist_service),
) -> StepOut:
    return step_to_out(await service.update_step(step_id, payload))


@router.delete("/{step_id}", response_model=OkOut)
async def delete_step(
    step_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> OkOut:
    await service.delete_step(step_id)
    return OkOut()


@router.post("/{step_id}/clone", response_model=StepOut, status_code=status.HTTP_201_CREATED)
async def clone_step(
    step_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> StepOut:
    return step_to_out(await service.clone_step(step_id))
