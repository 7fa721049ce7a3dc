"""Tests for stage time roll-up and reordering."""

from types import SimpleNamespace

import pytest

from backofhouse.services.stages import (
    apply_stage_rollup,
    detach_stage,
    move_item,
    roll_up_stage_times,
)


def make_stage(stage_id, total_time=0, sort_order=0):
    return SimpleNamespace(id=stage_id, total_time=total_time, sort_order=sort_order)


def make_step(step_id, stage_id, minutes, sort_order=0):
    return SimpleNamespace(
        id=step_id, stage_id=stage_id, time_in_minutes=minutes, sort_order=sort_order
    )


def test_roll_up_sums_steps_per_stage():
    """Prep gets 5 + 10, the unstaged step is reported separately."""
    prep = make_stage(1)
    steps = [make_step(1, 1, 5), make_step(2, 1, 10), make_step(3, None, 3)]

    rollup = roll_up_stage_times(steps, [prep])

    assert rollup.totals == {1: 15}
    assert rollup.unstaged_total == 3
    assert rollup.changed == [1]


def test_roll_up_missing_minutes_count_as_zero():
    """Steps without a duration add nothing."""
    stage = make_stage(1)
    rollup = roll_up_stage_times([make_step(1, 1, None), make_step(2, 1, 4)], [stage])
    assert rollup.totals == {1: 4}


def test_roll_up_empty_stage_is_zero():
    """A stage with no steps totals zero and is stale if it stored more."""
    rollup = roll_up_stage_times([], [make_stage(1, total_time=12)])
    assert rollup.totals == {1: 0}
    assert rollup.changed == [1]


def test_roll_up_dangling_stage_counts_as_unstaged():
    """A step pointing at a stage that is gone is treated as unstaged."""
    rollup = roll_up_stage_times([make_step(1, 42, 7)], [make_stage(1)])
    assert rollup.totals == {1: 0}
    assert rollup.unstaged_total == 7


def test_apply_rollup_is_idempotent():
    """A second pass over unchanged steps writes nothing."""
    stages = [make_stage(1), make_stage(2, total_time=0)]
    steps = [make_step(1, 1, 5), make_step(2, 1, 10)]

    first = apply_stage_rollup(stages, roll_up_stage_times(steps, stages))
    assert [stage.id for stage in first] == [1]
    assert stages[0].total_time == 15

    second = roll_up_stage_times(steps, stages)
    assert second.changed == []
    assert apply_stage_rollup(stages, second) == []


def test_detach_stage_keeps_steps():
    """Removing a stage leaves its steps unstaged."""
    steps = [make_step(1, 1, 5), make_step(2, 2, 10), make_step(3, 1, 2)]

    detached = detach_stage(steps, 1)

    assert [step.id for step in detached] == [1, 3]
    assert [step.stage_id for step in steps] == [None, 2, None]
    assert roll_up_stage_times(steps, [make_stage(2)]).unstaged_total == 7


def test_move_item_renumbers():
    """Moving an item renumbers sort_order from zero."""
    items = [make_stage(1, sort_order=0), make_stage(2, sort_order=1), make_stage(3, sort_order=2)]

    ordered = move_item(items, 3, 0)

    assert [item.id for item in ordered] == [3, 1, 2]
    assert [item.sort_order for item in ordered] == [0, 1, 2]


def test_move_item_clamps_index():
    """An index past the end moves the item last."""
    items = [make_stage(1), make_stage(2)]
    assert [item.id for item in move_item(items, 1, 10)] == [2, 1]


def test_move_item_unknown_id():
    """Moving an item that is not in the list fails."""
    with pytest.raises(ValueError):
        move_item([make_stage(1)], 5, 0)
