import asyncio
from datetime import datetime
from typing import List, Optional

from loguru import logger

from ..schemas.dashboard import DashboardData, DashboardFilters, DashboardSnapshot
from ..schemas.skips import HabitAnalytics, SkipPatterns
from ..schemas.step import Step
from .dashboard import DEFAULT_LOOKBACK_DAYS, build_dashboard
from .records import RecordStore, record_store
from .skips import analyze_skips, recommend_schedule
from .streaks import compute_streak


async def _goal_steps_or_empty(goal_id: str, source: RecordStore) -> List[Step]:
    try:
        return await source.list_steps([goal_id])
    except Exception as error:  # pylint: disable=broad-except
        # One learner's unreadable history must not break the caller's page.
        logger.warning(f"Step history unavailable for goal {goal_id}: {error}")
        return []


def _skip_records(steps: List[Step]):
    return [record for step in steps for record in step.skip_reasons]


async def analyze_goal_skips(goal_id: str, source: Optional[RecordStore] = None) -> SkipPatterns:
    steps = await _goal_steps_or_empty(goal_id, source or record_store)
    return analyze_skips(_skip_records(steps))


async def get_habit_analytics(goal_id: str, now: datetime, source: Optional[RecordStore] = None) -> Optional[HabitAnalytics]:
    source = source or record_store
    goal = await source.get_goal(goal_id)
    if goal is None:
        return None

    steps = await _goal_steps_or_empty(goal_id, source)
    patterns = analyze_skips(_skip_records(steps))
    total_completions = len([step for step in steps if step.status == "done"])
    total_skips = len([step for step in steps if step.status == "skipped"])
    completion_rate = (total_completions / len(steps)) * 100 if steps else 0

    weeks_since_start = 1
    if goal.created_at is not None:
        weeks_since_start = max(1, (now - goal.created_at).days // 7)

    streak = compute_streak(steps, now)
    return HabitAnalytics(
        goal_id=goal_id,
        total_completions=total_completions,
        current_streak=streak.current_streak,
        longest_streak=max(goal.longest_streak, streak.longest_streak),
        completion_rate=completion_rate,
        average_skips_per_week=total_skips / weeks_since_start,
        most_common_skip_reason=patterns.reasons[0].reason if patterns.reasons else None,
        skip_patterns=patterns,
        recommendations=recommend_schedule(patterns),
    )


async def build_coach_dashboard(
    coach_id: str,
    filters: Optional[DashboardFilters],
    now: datetime,
    source: Optional[RecordStore] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> DashboardData:
    source = source or record_store
    learner_ids = await source.learners_for_coach(coach_id)
    if not learner_ids:
        return DashboardData()

    # One round-trip per entity type across the whole learner list.
    profiles, (members, cohorts), goals, check_ins, support_actions = await asyncio.gather(
        source.list_profiles(learner_ids),
        source.list_cohort_memberships(learner_ids),
        source.list_goals(learner_ids),
        source.list_check_ins(learner_ids),
        source.list_support_actions(learner_ids),
    )
    steps = await source.list_steps([goal.id for goal in goals])

    snapshot = DashboardSnapshot(
        coach_id=coach_id,
        profiles=profiles,
        cohorts=cohorts,
        cohort_members=members,
        goals=goals,
        steps=steps,
        check_ins=check_ins,
        support_actions=support_actions,
    )
    return build_dashboard(learner_ids, snapshot, filters, now, lookback_days)
