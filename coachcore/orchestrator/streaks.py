from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

from ..schemas.goal import Goal
from ..schemas.progress import StreakMilestone, StreakResult, WeeklyCompletion, WeeklyHabitReport
from ..schemas.step import Step

MILESTONES = [(30, "platinum"), (14, "gold"), (7, "silver"), (3, "bronze")]
STREAK_RISK_HOURS = 24


def local_day(moment: datetime, now: datetime) -> date:
    # Aware timestamps are read in the caller's timezone so day boundaries line up with `now`.
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.date()


def week_start(now: datetime) -> date:
    today = now.date()
    return today - timedelta(days=(today.weekday() + 1) % 7)


def percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    # Half-up rounding on integers.
    return (200 * part + whole) // (2 * whole)


def _completion_days(steps: Iterable[Step], now: datetime) -> Set[date]:
    return {
        local_day(step.updated_at, now)
        for step in steps
        if step.status == "done" and step.updated_at is not None
    }


def compute_streak(steps: List[Step], now: datetime) -> StreakResult:
    days = _completion_days(steps, now)

    current = 0
    cursor = now.date()
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest = 0
    run = 0
    previous: Optional[date] = None
    for day in sorted(days):
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day

    return StreakResult(current_streak=current, longest_streak=max(longest, current))


def steps_due_in_week(steps: Iterable[Step], start: date) -> List[Step]:
    end = start + timedelta(days=7)
    return [step for step in steps if step.due_date is not None and start <= step.due_date < end]


def weekly_completion(steps: List[Step], now: datetime) -> WeeklyCompletion:
    this_week = steps_due_in_week(steps, week_start(now))
    completed = len([step for step in this_week if step.status == "done"])
    planned = len(this_week)
    return WeeklyCompletion(completed=completed, planned=planned, percentage=percent(completed, planned))


def streak_milestone(current_streak: int) -> Optional[StreakMilestone]:
    for threshold, milestone in MILESTONES:
        if current_streak >= threshold:
            return milestone
    return None


def last_completed_at(steps: Iterable[Step]) -> Optional[datetime]:
    stamps = [step.updated_at for step in steps if step.status == "done" and step.updated_at is not None]
    return max(stamps) if stamps else None


def is_streak_at_risk(last_completed: Optional[datetime], current_streak: int, now: datetime) -> bool:
    if last_completed is None or current_streak <= 0:
        return False
    return (now - last_completed).total_seconds() / 3600 > STREAK_RISK_HOURS


def weekly_habit_report(steps: List[Step], goal: Goal, start: date) -> WeeklyHabitReport:
    this_week = steps_due_in_week([step for step in steps if step.goal_id == goal.id], start)
    completions = len([step for step in this_week if step.status == "done"])
    skips = len([step for step in this_week if step.status == "skipped"])
    total = len(this_week)
    expected = goal.frequency_per_week or 7
    return WeeklyHabitReport(
        completions=completions,
        skips=skips,
        completion_rate=(completions / total) * 100 if total else 0,
        streak_maintained=completions >= expected,
    )


def streak_updates(goal: Goal, streak: StreakResult) -> Dict[str, Any]:
    """Fields the caller writes back to the goal record after a recompute."""
    return {
        "streak_count": streak.current_streak,
        "longest_streak": max(goal.longest_streak, streak.longest_streak),
    }
