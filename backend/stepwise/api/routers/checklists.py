from __future__ import annotations

import uuid
from pathlib import PurePath

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from stepwise.api.deps import get_checklist_service
from stepwise.api.serializers import checklist_to_out, step_to_out
from stepwise.config import Settings
from stepwise.schemas.checklist import CHECKLIST_TITLE_MAX_LENGTH, ChecklistCreate, ChecklistOut, ChecklistUpdate
from stepwise.schemas.step import StepCreate, StepOut
from stepwise.services.checklists import ChecklistService
from stepwise.services.csv_codec import CsvDocumentError, validate_csv_upload


router = APIRouter()


class StepCreatePayload(StepCreate):
    insert_after: uuid.UUID | None = None
    insert_before: uuid.UUID | None = None


class OkOut(BaseModel):
    ok: bool = True


async def _read_upload_with_limit(upload: UploadFile, max_bytes: int) -> bytes:
    size = 0
    chunks: list[bytes] = []
    while True:
        chunk = await upload.read(64 * 1024)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File is too large. Maximum size is {max_bytes / (1024 * 1024):g}MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _title_from_filename(filename: str | None) -> str:
    stem = PurePath(filename or "").stem.replace("_", " ").strip()
    return stem[:CHECKLIST_TITLE_MAX_LENGTH].strip() or "Imported Checklist"


@router.get("", response_model=list[ChecklistOut])
async def list_checklists(service: ChecklistService = Depends(get_checklist_service)) -> list[ChecklistOut]:
    return [checklist_to_out(checklist) for checklist in await service.list_checklists()]


@router.post("", response_model=ChecklistOut, status_code=status.HTTP_201_CREATED)
async def create_checklist(
    payload: ChecklistCreate,
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistOut:
    return checklist_to_out(await service.create_checklist(payload))


@router.post("/import", response_model=ChecklistOut, status_code=status.HTTP_201_CREATED)
async def import_checklist(
    request: Request,
    file: UploadFile = File(...),
    title: str | None = Form(None),
    description: str | None = Form(None),
    category_id: uuid.UUID | None = Form(None),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistOut:
    settings: Settings = request.app.state.settings
    try:
        validate_csv_upload(file.filename, file.content_type, allowed_mime=settings.csv_allowed_mime_set)
    except CsvDocumentError as exc:
        await file.close()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        data = await _read_upload_with_limit(file, settings.CSV_MAX_UPLOAD_BYTES)
    finally:
        await file.close()

    try:
        content = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSV file must be UTF-8 encoded")

    checklist = await service.import_checklist(
        title=title or _title_from_filename(file.filename),
        description=description,
        category_id=category_id,
        content=content,
    )
    return checklist_to_out(checklist)


@router.get("/{checklist_id}", response_model=ChecklistOut)
async def get_checklist(
    checklist_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistOut:
    return checklist_to_out(await service.get_checklist(checklist_id))


@router.put("/{checklist_id}", response_model=ChecklistOut)
async def update_checklist(
    checklist_id: uuid.UUID,
    payload: ChecklistUpdate,
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistOut:
    return checklist_to_out(await service.update_checklist(checklist_id, payload))


@router.delete("/{checklist_id}", response_model=OkOut)
async def delete_checklist(
    checklist_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> OkOut:
    await service.delete_checklist(checklist_id)
    return OkOut()


@router.post("/{checklist_id}/clone", response_model=ChecklistOut, status_code=status.HTTP_201_CREATED)
async def clone_checklist(
    checklist_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistOut:
    return checklist_to_out(await service.clone_checklist(checklist_id))


@router.get("/{checklist_id}/export")
async def export_checklist(
    checklist_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
):
    export = await service.export_checklist(checklist_id)
    return StreamingResponse(
        iter([export.content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/{checklist_id}/steps", response_model=list[StepOut])
async def list_steps(
    checklist_id: uuid.UUID,
    service: ChecklistService = Depends(get_checklist_service),
) -> list[StepOut]:
    return [step_to_out(step) for step in await service.list_steps(checklist_id)]


@router.post("/{checklist_id}/steps", response_model=StepOut, status_code=status.HTTP_201_CREATED)
async def create_step(
    checklist_id: uuid.UUID,
    payload: StepCreatePayload,
    service: ChecklistService = Depends(get_checklist_service),
) -> StepOut:
    data = StepCreate(**payload.model_dump(exclude={"insert_after", "insert_before"}, exclude_unset=True))
    step = await service.add_step(
        checklist_id,
        data,
        insert_after=payload.insert_after,
        insert_before=payload.insert_before,
    )
    return step_to_out(step)
