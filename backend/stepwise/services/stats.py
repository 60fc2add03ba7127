from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from stepwise.models.enums import StepStatus
from stepwise.models.types import as_utc


@dataclass(frozen=True)
class ChecklistStats:
    total_steps: int
    completed_steps: int
    completion_percentage: int
    start_datetime: datetime | None
    end_datetime: datetime | None
    total_duration_minutes: int


def completion_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half rounds up (66.5 -> 67), not to even.
    return math.floor(completed * 100 / total + 0.5)


def compute_stats(steps: Iterable[Any]) -> ChecklistStats:
    """Progress summary of a checklist.

    Rejected steps do not count towards ``total_steps`` but their duration is
    still part of ``total_duration_minutes``. The date range spans every step
    that has a date set.
    """
    steps = list(steps)
    counted = [step for step in steps if StepStatus(step.status) != StepStatus.rejected]
    completed = sum(1 for step in counted if StepStatus(step.status) == StepStatus.completed)

    starts = [as_utc(step.start_datetime) for step in steps if step.start_datetime is not None]
    ends = [as_utc(step.end_datetime) for step in steps if step.end_datetime is not None]

    return ChecklistStats(
        total_steps=len(counted),
        completed_steps=completed,
        completion_percentage=completion_percentage(completed, len(counted)),
        start_datetime=min(starts) if starts else None,
        end_datetime=max(ends) if ends else None,
        total_duration_minutes=sum(step.duration_minutes for step in steps),
    )
