"""Stage time roll-up and ordering helpers for recipe steps."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from backofhouse.services.costing import to_decimal


@dataclass(frozen=True)
class StageRollup:
    totals: dict[int, int]  # Stage id -> summed step minutes
    unstaged_total: int
    changed: list[int]  # Stage ids whose stored total differs from the computed one


def _minutes(value) -> int:
    return int(to_decimal(value))


def roll_up_stage_times(steps: Iterable, stages: Sequence) -> StageRollup:
    """Sum step durations into their stages.

    Steps without a stage, or pointing at a stage that no longer exists, are
    counted as unstaged. Stages are not modified; ``changed`` names the ones
    whose stored ``total_time`` is stale.
    """
    totals = {stage.id: 0 for stage in stages}
    unstaged_total = 0
    for step in steps:
        minutes = _minutes(step.time_in_minutes)
        if step.stage_id is not None and step.stage_id in totals:
            totals[step.stage_id] += minutes
        else:
            unstaged_total += minutes

    changed = [stage.id for stage in stages if (stage.total_time or 0) != totals[stage.id]]
    return StageRollup(totals=totals, unstaged_total=unstaged_total, changed=changed)


def apply_stage_rollup(stages: Iterable, rollup: StageRollup) -> list:
    """Write computed totals onto stale stages and return the ones written."""
    updated = []
    for stage in stages:
        if stage.id in rollup.changed:
            stage.total_time = rollup.totals[stage.id]
            updated.append(stage)
    return updated


def detach_stage(steps: Iterable, stage_id: int) -> list:
    """Clear the stage reference on every step in ``stage_id``; steps are kept."""
    detached = []
    for step in steps:
        if step.stage_id == stage_id:
            step.stage_id = None
            detached.append(step)
    return detached


def move_item(items: Sequence, item_id: int, new_index: int) -> list:
    """Move one item to ``new_index`` and renumber ``sort_order`` from 0.

    Raises ValueError when ``item_id`` is not in ``items``.
    """
    ordered = list(items)
    old_index = next((i for i, item in enumerate(ordered) if item.id == item_id), None)
    if old_index is None:
        raise ValueError(f"Item {item_id} not found")

    new_index = max(0, min(new_index, len(ordered) - 1))
    ordered.insert(new_index, ordered.pop(old_index))
    for position, item in enumerate(ordered):
        item.sort_order = position
    return ordered
