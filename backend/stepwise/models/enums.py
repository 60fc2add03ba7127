from __future__ import annotations

import enum


class StepStatus(str, enum.Enum):
    draft = "draft"
    started = "started"
    paused = "paused"
    rejected = "rejected"
    completed = "completed"


STEP_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in StepStatus)
