from typing import Dict, List, Optional, Tuple

from loguru import logger

from ..schemas.goal import Goal
from ..schemas.progress import BlockReason, ValidationResult
from ..schemas.step import Step

# Sub-steps look back at most this many positions for their main step.
MAIN_STEP_WINDOW = 5

OPEN_STATUSES = ("not_started", "in_progress")


def _ordinal_sort_key(step: Step) -> Tuple[int, int, int]:
    return (step.week_number or 0, step.session_number or 0, step.order_index)


def _blocked(reason: BlockReason, friendly_message: str, blocked_by: Optional[List[Step]] = None) -> ValidationResult:
    logger.debug(f"Step blocked: {reason} ({len(blocked_by or [])} blocking)")
    return ValidationResult(
        can_complete=False,
        reason=reason,
        friendly_message=friendly_message,
        blocked_by=blocked_by or [],
    )


def _is_outstanding(step: Step) -> bool:
    return step.is_required and step.status in OPEN_STATUSES


def find_dependency_cycle(step_id: str, all_steps: List[Step]) -> Optional[List[str]]:
    """Return the ids along a dependency path that leads back to ``step_id``.

    The returned path starts with ``step_id``; following each id's
    dependencies in turn reaches ``step_id`` again. None when no such path
    exists. Unknown ids are treated as leaves.
    """
    by_id: Dict[str, Step] = {step.id: step for step in all_steps}
    root = by_id.get(step_id)
    if root is None:
        return None
    stack = [(dep_id, [step_id]) for dep_id in reversed(root.dependency_step_ids)]
    visited = set()
    while stack:
        current, path = stack.pop()
        if current == step_id:
            return path
        if current in visited or current not in by_id:
            continue
        visited.add(current)
        for dep_id in reversed(by_id[current].dependency_step_ids):
            stack.append((dep_id, path + [current]))
    return None


def _check_dependencies(step: Step, all_steps: List[Step]) -> Optional[ValidationResult]:
    if not step.dependency_step_ids:
        return None
    by_id: Dict[str, Step] = {item.id: item for item in all_steps}

    cycle = find_dependency_cycle(step.id, all_steps)
    if cycle:
        return _blocked(
            "Dependency cycle",
            "These steps are waiting on each other, so none of them can be finished yet. Ask your coach to untangle the order.",
            [by_id[step_id] for step_id in cycle[1:]],
        )

    incomplete = [
        by_id[dep_id]
        for dep_id in step.dependency_step_ids
        if dep_id in by_id and by_id[dep_id].status != "done"
    ]
    if incomplete:
        titles = ", ".join(dep.title for dep in incomplete)
        return _blocked(
            "Missing dependencies",
            f"Almost there! First finish: {titles}. Each step builds on the one before it.",
            incomplete,
        )
    return None


def _check_week_progression(step: Step, goal_steps: List[Step]) -> Optional[ValidationResult]:
    week = step.week_number
    if week is None:
        return None

    earlier_weeks = [
        other
        for other in goal_steps
        if other.id != step.id
        and other.week_number is not None
        and other.week_number < week
        and _is_outstanding(other)
    ]
    if earlier_weeks:
        blocked_by = sorted(earlier_weeks, key=_ordinal_sort_key)
        weeks = ", ".join(str(number) for number in sorted({other.week_number for other in blocked_by}))
        return _blocked(
            "Previous weeks incomplete",
            f"One week at a time! Wrapping up Week {weeks} first builds the skills this step needs. You've got this!",
            blocked_by,
        )

    session = step.session_number
    if session is None:
        return None

    earlier_sessions = [
        other
        for other in goal_steps
        if other.id != step.id
        and other.week_number == week
        and (other.session_number or 1) < session
        and _is_outstanding(other)
    ]
    if earlier_sessions:
        return _blocked(
            "Previous sessions incomplete",
            f"You're doing great! Let's finish the earlier sessions in Week {week} first to keep your momentum going.",
            sorted(earlier_sessions, key=_ordinal_sort_key),
        )
    return None


def _check_main_step(step: Step, goal_steps: List[Step]) -> Optional[ValidationResult]:
    if step.ordinal is not None:
        return None
    preceding = [
        other
        for other in goal_steps
        if other.id != step.id
        and other.order_index < step.order_index
        and step.order_index - other.order_index <= MAIN_STEP_WINDOW
        and other.ordinal is not None
        and other.ordinal.is_main
    ]
    if not preceding:
        return None
    main = max(preceding, key=lambda other: other.order_index)
    if main.is_required and main.status != "done":
        return _blocked(
            "Main step not completed",
            f'Start with the main task first: "{main.title}". Once that\'s done, this step will feel much easier!',
            [main],
        )
    return None


def can_complete(step_id: str, all_steps: List[Step], goal: Optional[Goal] = None) -> ValidationResult:
    step = next((item for item in all_steps if item.id == step_id), None)
    if step is None or (goal is not None and step.goal_id != goal.id):
        return _blocked("Step not found", "Hmm, we can't find that step. Try refreshing?")
    if step.status == "done":
        return _blocked("Already completed", "You've already finished this step. Nice work!")

    goal_steps = [item for item in all_steps if item.goal_id == step.goal_id]
    failure = (
        _check_dependencies(step, all_steps)
        or _check_week_progression(step, goal_steps)
        or _check_main_step(step, goal_steps)
    )
    return failure or ValidationResult(can_complete=True)


def next_step_suggestions(blocked_by: List[Step]) -> List[str]:
    if not blocked_by:
        return []
    ordered = sorted(blocked_by, key=_ordinal_sort_key)
    first = ordered[0]
    suggestions = [f'Start with: "{first.title}"']
    if first.explainer:
        suggestions.append(f"Tip: {first.explainer}")
    remaining = len(ordered) - 1
    if remaining:
        suggestions.append(f"Then you'll have {remaining} more step{'s' if remaining > 1 else ''} to complete")
    return suggestions
