from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from loguru import logger

from ..schemas.dashboard import (
    CohortStats,
    CurrentGoal,
    DashboardData,
    DashboardFilters,
    DashboardSnapshot,
    StudentData,
)
from ..schemas.goal import CheckIn, Cohort, Goal, LearnerProfile, SupportAction
from ..schemas.progress import WeeklyCompletion
from ..schemas.step import Step
from .status import classify, collect_signals, last_check_in, recent_blockers
from .streaks import compute_streak, steps_due_in_week, week_start, weekly_completion

DEFAULT_LOOKBACK_DAYS = 7


def _current_goals(goals: List[Goal]) -> Dict[str, Goal]:
    current: Dict[str, Goal] = {}
    for goal in goals:
        if goal.status != "active":
            continue
        existing = current.get(goal.owner_id)
        if existing is None or _created_ts(goal) > _created_ts(existing):
            current[goal.owner_id] = goal
    return current


def _created_ts(goal: Goal) -> float:
    return goal.created_at.timestamp() if goal.created_at else float("-inf")


def _build_student(
    learner_id: str,
    profile: Optional[LearnerProfile],
    cohort: Optional[Cohort],
    goal: Optional[Goal],
    goal_steps: List[Step],
    check_ins: List[CheckIn],
    now: datetime,
) -> StudentData:
    this_week = steps_due_in_week(goal_steps, week_start(now))
    signals = collect_signals(this_week, check_ins, now)
    latest = last_check_in(check_ins)
    return StudentData(
        user_id=learner_id,
        first_name=(profile.first_name if profile else None) or "Student",
        avatar_url=profile.avatar_url if profile else None,
        grade=profile.grade if profile else None,
        cohort_id=cohort.id if cohort else None,
        cohort_name=cohort.name if cohort else None,
        status=classify(signals),
        current_goal=CurrentGoal(id=goal.id, title=goal.title, type=goal.goal_type or "habit") if goal else None,
        this_week_progress=weekly_completion(goal_steps, now),
        streak_days=compute_streak(goal_steps, now).current_streak,
        overdue_count=signals.overdue_count,
        last_check_in=latest.created_at if latest else None,
        average_difficulty=signals.average_difficulty,
        recent_blockers=recent_blockers(check_ins),
    )


def _unreadable_student(learner_id: str, profile: Optional[LearnerProfile], cohort: Optional[Cohort]) -> StudentData:
    return StudentData(
        user_id=learner_id,
        first_name=(profile.first_name if profile else None) or "Student",
        avatar_url=profile.avatar_url if profile else None,
        grade=profile.grade if profile else None,
        cohort_id=cohort.id if cohort else None,
        cohort_name=cohort.name if cohort else None,
        status="no_data",
        this_week_progress=WeeklyCompletion(completed=0, planned=0, percentage=0),
        streak_days=0,
        overdue_count=0,
    )


def build_dashboard(
    learner_ids: List[str],
    raw_data: DashboardSnapshot,
    filters: Optional[DashboardFilters],
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> DashboardData:
    """Roll a coach's learners up into per-student cards and cohort counts.

    Filters apply in a fixed order: cohort, then grade, then every remaining
    learner is classified, and only then is the status filter applied.
    ``stats`` always describes the learners before the status filter, so
    narrowing by status changes ``students`` but never the counts.
    """
    filters = filters or DashboardFilters()
    if not learner_ids:
        return DashboardData()

    cohort_by_id = {cohort.id: cohort for cohort in raw_data.cohorts}
    learner_cohort: Dict[str, Cohort] = {}
    for member in raw_data.cohort_members:
        cohort = cohort_by_id.get(member.cohort_id)
        if cohort and member.individual_id in learner_ids:
            learner_cohort[member.individual_id] = cohort
    cohorts = list({cohort.id: cohort for cohort in learner_cohort.values()}.values())

    # Each learner is classified once.
    selected = list(dict.fromkeys(learner_ids))
    if filters.cohort_id:
        selected = [lid for lid in selected if lid in learner_cohort and learner_cohort[lid].id == filters.cohort_id]

    profiles = {profile.user_id: profile for profile in raw_data.profiles}
    if filters.grade:
        selected = [lid for lid in selected if lid in profiles and profiles[lid].grade == filters.grade]

    window_start = now - timedelta(days=lookback_days)
    goals = _current_goals(raw_data.goals)

    steps_by_goal: Dict[str, List[Step]] = defaultdict(list)
    for step in raw_data.steps:
        steps_by_goal[step.goal_id].append(step)

    check_ins_by_learner: Dict[str, List[CheckIn]] = defaultdict(list)
    for check_in in raw_data.check_ins:
        check_ins_by_learner[check_in.user_id].append(check_in)

    actions_by_learner: Dict[str, List[SupportAction]] = defaultdict(list)
    for action in raw_data.support_actions:
        if filters.supporter_scope == "all" or action.coach_id == raw_data.coach_id:
            actions_by_learner[action.student_id].append(action)

    students = []
    interventions = 0
    for learner_id in selected:
        profile = profiles.get(learner_id)
        cohort = learner_cohort.get(learner_id)
        goal = goals.get(learner_id)
        try:
            recent = [check_in for check_in in check_ins_by_learner[learner_id] if check_in.created_at >= window_start]
            student = _build_student(
                learner_id,
                profile,
                cohort,
                goal,
                steps_by_goal.get(goal.id, []) if goal else [],
                recent,
                now,
            )
            interventions += len([action for action in actions_by_learner[learner_id] if action.created_at >= window_start])
        except (TypeError, ValueError) as error:
            logger.warning(f"Could not build dashboard card for {learner_id}: {error}")
            student = _unreadable_student(learner_id, profile, cohort)
        students.append(student)

    by_status = Counter(student.status for student in students)
    stats = CohortStats(
        on_track=by_status["on_track"],
        at_risk=by_status["at_risk"],
        stuck=by_status["stuck"],
        no_data=by_status["no_data"],
        total_overdue=sum(student.overdue_count for student in students),
        interventions_last_7_days=interventions,
    )

    visible = [student for student in students if student.status == filters.status] if filters.status else students
    logger.info(
        f"Dashboard built: {len(students)} learners classified, {len(visible)} shown "
        f"(on_track={stats.on_track}, at_risk={stats.at_risk}, stuck={stats.stuck}, no_data={stats.no_data})"
    )
    return DashboardData(students=visible, stats=stats, cohorts=cohorts)
