from __future__ import annotations

from stepwise.models.category import Category
from stepwise.models.checklist import Checklist
from stepwise.models.step import Step
from stepwise.schemas.category import CategoryOut
from stepwise.schemas.checklist import ChecklistOut, ChecklistStatsOut
from stepwise.schemas.step import StepOut
from stepwise.services.ordering import sort_steps
from stepwise.services.stats import compute_stats


def category_to_out(category: Category, checklist_count: int | None = None) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        color=category.color,
        created_at=category.created_at,
        updated_at=category.updated_at,
        checklist_count=checklist_count,
    )


def step_to_out(step: Step) -> StepOut:
    return StepOut(
        id=step.id,
        checklist_id=step.checklist_id,
        title=step.title,
        description=step.description,
        duration_minutes=step.duration_minutes,
        start_datetime=step.start_datetime,
        end_datetime=step.end_datetime,
        status=step.status,
        comments=step.comments,
        order_index=step.order_index,
        created_at=step.created_at,
        updated_at=step.updated_at,
    )


def checklist_to_out(checklist: Checklist) -> ChecklistOut:
    steps = sort_steps(checklist.steps)
    stats = compute_stats(steps)
    return ChecklistOut(
        id=checklist.id,
        title=checklist.title,
        description=checklist.description,
        category_id=checklist.category_id,
        category=category_to_out(checklist.category) if checklist.category else None,
        is_default=checklist.is_default,
        created_at=checklist.created_at,
        updated_at=checklist.updated_at,
        steps=[step_to_out(step) for step in steps],
        stats=ChecklistStatsOut(
            total_steps=stats.total_steps,
            completed_steps=stats.completed_steps,
            completion_percentage=stats.completion_percentage,
            start_datetime=stats.start_datetime,
            end_datetime=stats.end_datetime,
            total_duration_minutes=stats.total_duration_minutes,
        ),
    )
