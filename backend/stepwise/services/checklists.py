"""Checklist and step operations.

Composes the ordering plans and the CSV codec with persistence. Each public
method is one unit of work and commits once at the end; index rewrites of
existing rows are flushed before the row that triggered them is inserted or
after the row being removed is gone.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stepwise.models.category import Category
from stepwise.models.checklist import Checklist
from stepwise.models.enums import StepStatus
from stepwise.models.step import DEFAULT_DURATION_MINUTES, DEFAULT_STEP_TITLE, Step
from stepwise.schemas.checklist import ChecklistCreate, ChecklistUpdate
from stepwise.schemas.step import StepCreate, StepUpdate
from stepwise.services import ordering
from stepwise.services.csv_codec import export_filename, parse_csv, serialize_steps
from stepwise.services.errors import BadRequestError, CsvImportError, ForbiddenError, NotFoundError


logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str


def ensure_editable(checklist: Checklist, detail: str) -> None:
    if checklist.is_default:
        raise ForbiddenError(detail)


def build_step(checklist_id: uuid.UUID, data: StepCreate, *, order_index: int) -> Step:
    title = (data.title or "").strip() or DEFAULT_STEP_TITLE
    return Step(
        checklist_id=checklist_id,
        title=title,
        description=data.description or None,
        duration_minutes=data.duration_minutes if data.duration_minutes is not None else DEFAULT_DURATION_MINUTES,
        start_datetime=data.start_datetime,
        end_datetime=data.end_datetime,
        status=data.status or StepStatus.draft,
        comments=data.comments or None,
        order_index=order_index,
    )


def copy_step(source: Step, *, checklist_id: uuid.UUID, order_index: int, title: str | None = None) -> Step:
    """Copy of ``source`` with progress reset: draft status, no comments."""
    return Step(
        checklist_id=checklist_id,
        title=title if title is not None else source.title,
        description=source.description,
        duration_minutes=source.duration_minutes,
        start_datetime=source.start_datetime,
        end_datetime=source.end_datetime,
        status=StepStatus.draft,
        comments=None,
        order_index=order_index,
    )


class ChecklistService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _checklist_query(self):
        return (
            select(Checklist)
            .options(selectinload(Checklist.category), selectinload(Checklist.steps))
            .execution_options(populate_existing=True)
        )

    async def _get_checklist_row(self, checklist_id: uuid.UUID) -> Checklist:
        checklist = (
            await self.db.execute(select(Checklist).where(Checklist.id == checklist_id))
        ).scalar_one_or_none()
        if checklist is None:
            raise NotFoundError("Checklist not found")
        return checklist

    async def _get_step_row(self, step_id: uuid.UUID) -> Step:
        step = (
            await self.db.execute(
                select(Step).options(selectinload(Step.checklist)).where(Step.id == step_id)
            )
        ).scalar_one_or_none()
        if step is None:
            raise NotFoundError("Step not found")
        return step

    async def _load_steps(self, checklist_id: uuid.UUID) -> list[Step]:
        stmt = (
            select(Step)
            .where(Step.checklist_id == checklist_id)
            .order_by(Step.order_index, Step.created_at)
            .execution_options(populate_existing=True)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def _ensure_category(self, category_id: uuid.UUID) -> None:
        category = (await self.db.execute(select(Category.id).where(Category.id == category_id))).scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category not found")

    async def _apply(self, steps: list[Step], plan: ordering.OrderingPlan) -> None:
        ordering.apply_plan(steps, plan)
        await self.db.flush()

    # -------------------------------------------------------------------------
    # Checklists
    # -------------------------------------------------------------------------

    async def list_checklists(self) -> list[Checklist]:
        stmt = self._checklist_query().order_by(Checklist.updated_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_checklist(self, checklist_id: uuid.UUID) -> Checklist:
        checklist = (
            await self.db.execute(self._checklist_query().where(Checklist.id == checklist_id))
        ).scalar_one_or_none()
        if checklist is None:
            raise NotFoundError("Checklist not found")
        return checklist

    async def create_checklist(self, payload: ChecklistCreate) -> Checklist:
        title = (payload.title or "").strip()
        if not title:
            raise BadRequestError("Checklist title is required")
        if payload.category_id is not None:
            await self._ensure_category(payload.category_id)

        checklist = Checklist(
            title=title,
            description=payload.description or None,
            category_id=payload.category_id,
            is_default=False,
        )
        self.db.add(checklist)
        await self.db.flush()

        batch = payload.steps or []
        indices = ordering.dense_batch_indices([step.order_index for step in batch])
        for data, order_index in zip(batch, indices):
            self.db.add(build_step(checklist.id, data, order_index=order_index))

        await self.db.commit()
        logger.info("Created checklist %s with %d step(s)", checklist.id, len(batch))
        return await self.get_checklist(checklist.id)

    async def update_checklist(self, checklist_id: uuid.UUID, payload: ChecklistUpdate) -> Checklist:
        checklist = await self._get_checklist_row(checklist_id)
        ensure_editable(checklist, "Cannot edit default checklists")

        fields = payload.model_fields_set
        if "title" in fields:
            title = (payload.title or "").strip()
            if not title:
                raise BadRequestError("Checklist title is required")
            checklist.title = title
        if "description" in fields:
            checklist.description = payload.description or None
        if "category_id" in fields:
            if payload.category_id is not None:
                await self._ensure_category(payload.category_id)
            checklist.category_id = payload.category_id

        await self.db.commit()
        return await self.get_checklist(checklist_id)

    async def delete_checklist(self, checklist_id: uuid.UUID) -> None:
        checklist = await self._get_checklist_row(checklist_id)
        ensure_editable(checklist, "Cannot delete default checklists")

        # Steps go with it through ON DELETE CASCADE.
        await self.db.delete(checklist)
        await self.db.commit()
        logger.info("Deleted checklist %s", checklist_id)

    async def clone_checklist(self, checklist_id: uuid.UUID) -> Checklist:
        original = await self.get_checklist(checklist_id)

        clone = Checklist(
            title=f"{original.title}{COPY_SUFFIX}",
            description=original.description,
            category_id=original.category_id,
            is_default=False,
        )
        self.db.add(clone)
        await self.db.flush()

        for step in original.steps:
            self.db.add(copy_step(step, checklist_id=clone.id, order_index=step.order_index))

        await self.db.commit()
        logger.info("Cloned checklist %s into %s", checklist_id, clone.id)
        return await self.get_checklist(clone.id)

    async def export_checklist(self, checklist_id: uuid.UUID) -> CsvExport:
        checklist = await self.get_checklist(checklist_id)
        steps = ordering.sort_steps(checklist.steps)
        return CsvExport(filename=export_filename(checklist.title), content=serialize_steps(steps))

    async def import_checklist(
        self,
        *,
        title: str | None,
        content: str,
        description: str | None = None,
        category_id: uuid.UUID | None = None,
    ) -> Checklist:
        """Create a checklist from a CSV document.

        Any row error rejects the whole document; nothing is written.
        """
        result = parse_csv(content)
        if not result.success:
            logger.warning("Rejected CSV import with %d error(s)", len(result.errors))
            raise CsvImportError(result.errors)

        try:
            payload = ChecklistCreate(
                title=title,
                description=description,
                category_id=category_id,
                steps=result.steps,
            )
        except ValidationError as exc:
            first = exc.errors()[0]
            field_name = ".".join(str(part) for part in first["loc"])
            raise BadRequestError(f"Invalid {field_name}: {first['msg']}") from None
        return await self.create_checklist(payload)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def list_steps(self, checklist_id: uuid.UUID) -> list[Step]:
        await self._get_checklist_row(checklist_id)
        return await self._load_steps(checklist_id)

    async def add_step(
        self,
        checklist_id: uuid.UUID,
        data: StepCreate,
        *,
        insert_after: uuid.UUID | None = None,
        insert_before: uuid.UUID | None = None,
    ) -> Step:
        if insert_after is not None and insert_before is not None:
            raise BadRequestError("Use either insert_after or insert_before, not both")

        checklist = await self._get_checklist_row(checklist_id)
        ensure_editable(checklist, "Cannot add steps to default checklists")

        steps = await self._load_steps(checklist_id)
        if insert_after is not None:
            plan = ordering.plan_insert_after(steps, insert_after)
        elif insert_before is not None:
            plan = ordering.plan_insert_before(steps, insert_before)
        elif data.order_index is not None:
            plan = ordering.plan_insert_at(steps, data.order_index)
        else:
            plan = ordering.plan_append(steps)

        await self._apply(steps, plan)
        step = build_step(checklist_id, data, order_index=plan.new_index)
        self.db.add(step)
        await self.db.commit()
        logger.info("Added step %s to checklist %s at %d", step.id, checklist_id, step.order_index)
        return step

    async def update_step(self, step_id: uuid.UUID, payload: StepUpdate) -> Step:
        step = await self._get_step_row(step_id)
        ensure_editable(step.checklist, "Cannot edit steps in default checklists")

        fields = payload.model_fields_set
        if "title" in fields:
            title = (payload.title or "").strip()
            if not title:
                raise BadRequestError("Step title is required")
            step.title = title
        if "description" in fields:
            step.description = payload.description or None
        if "duration_minutes" in fields:
            if payload.duration_minutes is None:
                raise BadRequestError("duration_minutes cannot be null")
            step.duration_minutes = payload.duration_minutes
        if "start_datetime" in fields:
            step.start_datetime = payload.start_datetime
        if "end_datetime" in fields:
            step.end_datetime = payload.end_datetime
        if "status" in fields:
            if payload.status is None:
                raise BadRequestError("status cannot be null")
            step.status = payload.status
        if "comments" in fields:
            step.comments = payload.comments or None

        await self.db.commit()
        return step

    async def delete_step(self, step_id: uuid.UUID) -> None:
        step = await self._get_step_row(step_id)
        ensure_editable(step.checklist, "Cannot delete steps from default checklists")

        checklist_id = step.checklist_id
        siblings = await self._load_steps(checklist_id)
        plan = ordering.plan_compact(siblings, removed_id=step.id)

        await self.db.delete(step)
        await self.db.flush()
        await self._apply([s for s in siblings if s.id != step.id], plan)
        await self.db.commit()
        logger.info("Deleted step %s from checklist %s", step_id, checklist_id)

    async def clone_step(self, step_id: uuid.UUID) -> Step:
        source = await self._get_step_row(step_id)
        ensure_editable(source.checklist, "Cannot clone steps in default checklists")

        steps = await self._load_steps(source.checklist_id)
        plan = ordering.plan_clone(steps, source.id)
        await self._apply(steps, plan)

        clone = copy_step(
            source,
            checklist_id=source.checklist_id,
            order_index=plan.new_index,
            title=f"{source.title}{COPY_SUFFIX}",
        )
        self.db.add(clone)
        await self.db.commit()
        logger.info("Cloned step %s into %s", step_id, clone.id)
        return clone

    async def reorder_steps(self, checklist_id: uuid.UUID, step_ids: list[uuid.UUID]) -> list[Step]:
        checklist = await self._get_checklist_row(checklist_id)
        ensure_editable(checklist, "Cannot reorder steps in default checklists")

        steps = await self._load_steps(checklist_id)
        plan = ordering.plan_reorder(steps, step_ids)
        await self._apply(steps, plan)
        await self.db.commit()
        return ordering.sort_steps(steps)
