"""
Learner status classification for the coach dashboard.

The checks are a strict priority ladder, not a weighted score: the first
bucket whose condition matches wins, so a learner who meets both a stuck
and an at-risk condition is always reported as stuck.
"""
from datetime import datetime, time
from typing import Iterable, List, Optional

from loguru import logger

from ..schemas.dashboard import StatusSignals, StudentStatus
from ..schemas.goal import CheckIn
from ..schemas.step import Step

NO_DATA_CHECK_IN_HOURS = 168

STUCK_OVERDUE_COUNT = 3
STUCK_OVERDUE_HOURS = 72
STUCK_DIFFICULTY = 2.5
STUCK_SILENCE_HOURS = 48

AT_RISK_DIFFICULTY = 2.3
AT_RISK_COMPLETION_RATIO = 0.6

# Reported when a learner has never checked in.
NO_CHECK_IN_HOURS = 999.0

NO_BLOCKER_TAG = "none"


def classify(signals: StatusSignals) -> StudentStatus:
    if signals.planned_count == 0 or signals.hours_since_last_check_in > NO_DATA_CHECK_IN_HOURS:
        return "no_data"

    if (
        signals.overdue_count >= STUCK_OVERDUE_COUNT
        or signals.oldest_overdue_hours > STUCK_OVERDUE_HOURS
        or (signals.average_difficulty > STUCK_DIFFICULTY and signals.hours_since_last_check_in > STUCK_SILENCE_HOURS)
    ):
        return "stuck"

    if (
        signals.overdue_count >= 1
        or signals.average_difficulty > AT_RISK_DIFFICULTY
        or (signals.planned_count > 0 and signals.completed_count / signals.planned_count < AT_RISK_COMPLETION_RATIO)
    ):
        return "at_risk"

    return "on_track"


def due_at(step: Step, now: datetime) -> Optional[datetime]:
    if step.due_date is None:
        return None
    return datetime.combine(step.due_date, time.min, tzinfo=now.tzinfo)


def overdue_steps(steps: Iterable[Step], now: datetime) -> List[Step]:
    overdue = [step for step in steps if step.status != "done" and step.due_date is not None and due_at(step, now) < now]
    return sorted(overdue, key=lambda step: step.due_date)


def last_check_in(check_ins: Iterable[CheckIn]) -> Optional[CheckIn]:
    return max(check_ins, key=lambda check_in: check_in.created_at, default=None)


def average_difficulty(check_ins: List[CheckIn]) -> float:
    if not check_ins:
        return 0.0
    # Check-ins without a rating still count toward the denominator.
    return sum(check_in.difficulty or 0 for check_in in check_ins) / len(check_ins)


def recent_blockers(check_ins: Iterable[CheckIn]) -> List[str]:
    seen: List[str] = []
    for check_in in check_ins:
        for tag in check_in.blocker_tags:
            if tag != NO_BLOCKER_TAG and tag not in seen:
                seen.append(tag)
    return seen


def collect_signals(steps: List[Step], check_ins: List[CheckIn], now: datetime) -> StatusSignals:
    overdue = overdue_steps(steps, now)
    oldest_overdue_hours = (now - due_at(overdue[0], now)).total_seconds() / 3600 if overdue else 0.0

    latest = last_check_in(check_ins)
    hours_since = (now - latest.created_at).total_seconds() / 3600 if latest else NO_CHECK_IN_HOURS

    signals = StatusSignals(
        planned_count=len(steps),
        completed_count=len([step for step in steps if step.status == "done"]),
        overdue_count=len(overdue),
        oldest_overdue_hours=oldest_overdue_hours,
        hours_since_last_check_in=hours_since,
        average_difficulty=average_difficulty(check_ins),
    )
    logger.debug(f"Collected signals: {signals.model_dump()}")
    return signals
