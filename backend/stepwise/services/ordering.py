"""Order index bookkeeping for the steps of one checklist.

Every function here works on an already loaded list of steps (anything with
``id`` and ``order_index``) and returns an :class:`OrderingPlan` describing
which rows get which index. Nothing touches the database; the caller applies
the plan and flushes.

After a plan is applied the indices of the checklist are ``0..n-1`` with no
gaps or duplicates, provided they were before (compaction and reorder restore
that state from any starting point).
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from stepwise.services.errors import BadRequestError, NotFoundError


class OrderedStep(Protocol):
    id: uuid.UUID
    order_index: int


@dataclass(frozen=True)
class IndexUpdate:
    step_id: uuid.UUID
    order_index: int


@dataclass(frozen=True)
class OrderingPlan:
    # Index for the row being created; None when nothing is created.
    new_index: int | None = None
    updates: list[IndexUpdate] = field(default_factory=list)

    def as_mapping(self) -> dict[uuid.UUID, int]:
        return {update.step_id: update.order_index for update in self.updates}


def sort_steps(steps: Iterable[OrderedStep]) -> list[OrderedStep]:
    # sorted() is stable, so ties keep the order they were loaded in.
    return sorted(steps, key=lambda step: step.order_index)


def _find(steps: Sequence[OrderedStep], step_id: uuid.UUID, detail: str) -> OrderedStep:
    for step in steps:
        if step.id == step_id:
            return step
    raise NotFoundError(detail)


def _shift_from(steps: Sequence[OrderedStep], index: int) -> list[IndexUpdate]:
    return [
        IndexUpdate(step_id=step.id, order_index=step.order_index + 1)
        for step in sort_steps(steps)
        if step.order_index >= index
    ]


def plan_append(steps: Sequence[OrderedStep]) -> OrderingPlan:
    if not steps:
        return OrderingPlan(new_index=0)
    return OrderingPlan(new_index=max(step.order_index for step in steps) + 1)


def plan_insert_after(steps: Sequence[OrderedStep], target_id: uuid.UUID) -> OrderingPlan:
    target = _find(steps, target_id, "Target step not found")
    new_index = target.order_index + 1
    return OrderingPlan(new_index=new_index, updates=_shift_from(steps, new_index))


def plan_insert_before(steps: Sequence[OrderedStep], target_id: uuid.UUID) -> OrderingPlan:
    target = _find(steps, target_id, "Target step not found")
    new_index = target.order_index
    return OrderingPlan(new_index=new_index, updates=_shift_from(steps, new_index))


def plan_insert_at(steps: Sequence[OrderedStep], index: int) -> OrderingPlan:
    """Insert at an explicit slot; a slot past the end becomes an append."""
    append_index = plan_append(steps).new_index
    if index >= append_index:
        return OrderingPlan(new_index=append_index)
    index = max(index, 0)
    return OrderingPlan(new_index=index, updates=_shift_from(steps, index))


def plan_clone(steps: Sequence[OrderedStep], source_id: uuid.UUID) -> OrderingPlan:
    """The copy goes right after its source."""
    source = _find(steps, source_id, "Step not found")
    new_index = source.order_index + 1
    return OrderingPlan(new_index=new_index, updates=_shift_from(steps, new_index))


def plan_compact(steps: Sequence[OrderedStep], removed_id: uuid.UUID | None = None) -> OrderingPlan:
    """Renumber the remaining steps ``0..n-1`` in their current relative order.

    The whole list is renumbered rather than just the tail after the gap, so
    earlier gaps or duplicates are repaired too. Only rows whose index actually
    changes are returned.
    """
    remaining = [step for step in sort_steps(steps) if step.id != removed_id]
    return OrderingPlan(
        updates=[
            IndexUpdate(step_id=step.id, order_index=position)
            for position, step in enumerate(remaining)
            if step.order_index != position
        ]
    )


def plan_reorder(steps: Sequence[OrderedStep], ordered_ids: Sequence[uuid.UUID]) -> OrderingPlan:
    """Assign each step its position in ``ordered_ids``.

    ``ordered_ids`` must be exactly a permutation of the checklist's step ids;
    a partial or padded list would leave stale indices behind.
    """
    if not ordered_ids:
        raise BadRequestError("step_ids must be a non-empty list")
    if len(set(ordered_ids)) != len(ordered_ids):
        raise BadRequestError("step_ids contains duplicates")

    by_id = {step.id: step for step in steps}
    if set(ordered_ids) != set(by_id):
        raise BadRequestError("step_ids must list every step of the checklist exactly once")

    return OrderingPlan(
        updates=[
            IndexUpdate(step_id=step_id, order_index=position)
            for position, step_id in enumerate(ordered_ids)
            if by_id[step_id].order_index != position
        ]
    )


def dense_batch_indices(requested: Sequence[int | None]) -> list[int]:
    """Final indices for a batch of new steps created together.

    Entries without a requested index take their batch position. The batch is
    then sorted by (requested index, position) and numbered ``0..n-1``, so the
    requested relative order is kept and the result has no gaps.
    """
    keyed = sorted(
        range(len(requested)),
        key=lambda position: (
            requested[position] if requested[position] is not None else position,
            position,
        ),
    )
    result = [0] * len(requested)
    for index, position in enumerate(keyed):
        result[position] = index
    return result


def apply_plan(steps: Iterable[OrderedStep], plan: OrderingPlan) -> None:
    """Write the planned indices onto the loaded step objects."""
    mapping = plan.as_mapping()
    if not mapping:
        return
    for step in steps:
        if step.id in mapping:
            step.order_index = mapping[step.id]


def is_dense(steps: Iterable[OrderedStep]) -> bool:
    indices = sorted(step.order_index for step in steps)
    return indices == list(range(len(indices)))
