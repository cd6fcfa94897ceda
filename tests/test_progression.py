import pathlib
import sys

import pytest
from pydantic import ValidationError

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from coachcore.orchestrator.progression import (  # noqa: E402
    can_complete,
    find_dependency_cycle,
    next_step_suggestions,
)
from coachcore.schemas.goal import Goal  # noqa: E402
from coachcore.schemas.step import Step, StepOrdinal, ordinal_from_title  # noqa: E402

GOAL = Goal(id="g1", owner_id="u1", title="Learn to swim")


def make_step(step_id, title="", **fields):
    fields.setdefault("goal_id", "g1")
    return Step(id=step_id, title=title, **fields)


def test_ordinal_from_title():
    ordinal = ordinal_from_title("week 2 session 3: breathing drills")
    assert ordinal.week_number == 2 and ordinal.session_number == 3
    assert ordinal_from_title("Week 4 review").session_number is None
    assert ordinal_from_title("Session 2 warmup") is None
    assert ordinal_from_title("Pack a towel") is None
    assert ordinal_from_title("Week 0 orientation") is None


def test_title_only_steps_get_ordinals_when_built():
    steps = [
        Step.model_validate({"id": "a", "goal_id": "g1", "title": "Week 1 Session 1", "order_index": 1}),
        Step.model_validate({"id": "b", "goal_id": "g1", "title": "Week 2 Session 1", "order_index": 2}),
    ]
    assert steps[1].week_number == 2 and steps[1].session_number == 1
    result = can_complete("b", steps, GOAL)
    assert result.can_complete is False
    assert result.reason == "Previous weeks incomplete"
    assert [step.id for step in result.blocked_by] == ["a"]


def test_ordinal_numbers_start_at_one():
    with pytest.raises(ValidationError):
        StepOrdinal(week_number=0)
    with pytest.raises(ValidationError):
        StepOrdinal(week_number=1, session_number=0)


def test_missing_step_is_a_structured_failure():
    result = can_complete("nope", [make_step("a")], GOAL)
    assert result.can_complete is False
    assert result.reason == "Step not found"
    assert result.friendly_message


def test_step_from_another_goal_is_not_found():
    step = make_step("a", goal_id="other")
    assert can_complete("a", [step], GOAL).reason == "Step not found"


def test_already_done_has_distinct_reason():
    result = can_complete("a", [make_step("a", status="done")], GOAL)
    assert result.can_complete is False
    assert result.reason == "Already completed"
    assert result.friendly_message != "Already completed"


def test_plain_step_without_dependencies_can_complete():
    steps = [make_step("a", "Fill water bottle", order_index=1), make_step("b", "Pack a towel", order_index=2)]
    result = can_complete("b", steps, GOAL)
    assert result.can_complete is True
    assert result.reason is None
    assert result.blocked_by == []


def test_single_incomplete_dependency_is_reported():
    dep = make_step("dep", "Buy goggles", status="in_progress")
    done_dep = make_step("done-dep", "Find a pool", status="done")
    target = make_step("t", "Book a lesson", dependency_step_ids=["dep", "done-dep"])
    result = can_complete("t", [dep, done_dep, target], GOAL)
    assert result.can_complete is False
    assert result.reason == "Missing dependencies"
    assert [step.id for step in result.blocked_by] == ["dep"]
    assert "Buy goggles" in result.friendly_message


def test_unknown_dependency_ids_are_ignored():
    target = make_step("t", "Book a lesson", dependency_step_ids=["ghost"])
    assert can_complete("t", [target], GOAL).can_complete is True


def test_dependency_cycle_is_refused():
    a = make_step("a", "First", dependency_step_ids=["b"])
    b = make_step("b", "Second", dependency_step_ids=["c"])
    c = make_step("c", "Third", dependency_step_ids=["a"], status="done")
    assert find_dependency_cycle("a", [a, b, c]) == ["a", "b", "c"]
    result = can_complete("a", [a, b, c], GOAL)
    assert result.reason == "Dependency cycle"
    assert [step.id for step in result.blocked_by] == ["b", "c"]


def test_no_cycle_in_diamond():
    a = make_step("a", dependency_step_ids=["b", "c"])
    b = make_step("b", dependency_step_ids=["d"])
    c = make_step("c", dependency_step_ids=["d"])
    d = make_step("d")
    assert find_dependency_cycle("a", [a, b, c, d]) is None


def test_previous_week_blocks_and_sorts_blockers():
    steps = [
        make_step("w2s1", "Week 2 Session 1 Kick drills", order_index=5),
        make_step("w1s2", "Week 1 Session 2 Float", order_index=3),
        make_step("w1s1", "Week 1 Session 1 Breathing", order_index=1),
        make_step("w1opt", "Week 1 bonus video", order_index=4, is_required=False),
        make_step("w1skip", "Week 1 Session 3 Extra", order_index=6, status="skipped"),
        make_step("w3s1", "Week 3 Session 1 Laps", order_index=9),
    ]
    result = can_complete("w3s1", steps, GOAL)
    assert result.can_complete is False
    assert result.reason == "Previous weeks incomplete"
    assert [step.id for step in result.blocked_by] == ["w1s1", "w1s2", "w2s1"]
    assert "Week 1, 2" in result.friendly_message


def test_previous_session_in_same_week_blocks():
    steps = [
        make_step("w1s1", "Week 1 Session 1", status="done", order_index=1),
        make_step("w2s1", "Week 2 Session 1", order_index=2),
        make_step("w2s2", "Week 2 Session 2", order_index=3),
        make_step("w2s3", "Week 2 Session 3", order_index=4),
    ]
    result = can_complete("w2s3", steps, GOAL)
    assert result.reason == "Previous sessions incomplete"
    assert [step.id for step in result.blocked_by] == ["w2s1", "w2s2"]

    steps[1] = steps[1].model_copy(update={"status": "done"})
    steps[2] = steps[2].model_copy(update={"status": "skipped"})
    assert can_complete("w2s3", steps, GOAL).can_complete is True


def test_week_only_step_skips_session_rule():
    steps = [
        make_step("w2s1", "Week 2 Session 1", order_index=1),
        make_step("w2", "Week 2 reflection", order_index=2),
    ]
    assert can_complete("w2", steps, GOAL).can_complete is True


def test_ordinals_come_from_structured_field_not_title():
    steps = [
        make_step("early", "Warm up", ordinal={"week_number": 1, "session_number": 1}, order_index=1),
        make_step("late", "Week 1 Session 1 in the title only", ordinal={"week_number": 2, "session_number": 1}, order_index=8),
    ]
    result = can_complete("late", steps, GOAL)
    assert result.reason == "Previous weeks incomplete"
    assert [step.id for step in result.blocked_by] == ["early"]


def test_sub_step_waits_for_nearby_main_step():
    steps = [
        make_step("main", "Week 1 Session 1 Swim a lap", order_index=10),
        make_step("sub", "Put on goggles", order_index=12),
    ]
    result = can_complete("sub", steps, GOAL)
    assert result.reason == "Main step not completed"
    assert [step.id for step in result.blocked_by] == ["main"]
    assert "Swim a lap" in result.friendly_message


def test_sub_step_outside_window_or_after_optional_main_is_free():
    far = [
        make_step("main", "Week 1 Session 1 Swim a lap", order_index=1),
        make_step("sub", "Put on goggles", order_index=7),
    ]
    assert can_complete("sub", far, GOAL).can_complete is True

    optional = [
        make_step("main", "Week 1 Session 1 Swim a lap", order_index=1, is_required=False),
        make_step("sub", "Put on goggles", order_index=2),
    ]
    assert can_complete("sub", optional, GOAL).can_complete is True


def test_sub_step_uses_nearest_preceding_main_step():
    steps = [
        make_step("m1", "Week 1 Session 1", order_index=1),
        make_step("m2", "Week 1 Session 2", order_index=3, status="done"),
        make_step("sub", "Stretch", order_index=4),
    ]
    assert can_complete("sub", steps, GOAL).can_complete is True


def test_dependency_check_runs_before_week_check():
    steps = [
        make_step("w1", "Week 1 Session 1", order_index=1),
        make_step("dep", "Get a pass", order_index=2),
        make_step("w2", "Week 2 Session 1", order_index=3, dependency_step_ids=["dep"]),
    ]
    assert can_complete("w2", steps, GOAL).reason == "Missing dependencies"


def test_next_step_suggestions():
    blocked = [
        make_step("b", "Week 2 Session 1 Kick", order_index=4),
        make_step("a", "Week 1 Session 2 Float", order_index=2, explainer="Relax your shoulders"),
        make_step("c", "Week 2 Session 2 Glide", order_index=5),
    ]
    suggestions = next_step_suggestions(blocked)
    assert suggestions == [
        'Start with: "Week 1 Session 2 Float"',
        "Tip: Relax your shoulders",
        "Then you'll have 2 more steps to complete",
    ]
    assert next_step_suggestions([]) == []
    assert next_step_suggestions(blocked[:1]) == ['Start with: "Week 2 Session 1 Kick"']
