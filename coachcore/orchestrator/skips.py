from typing import Dict, List

from ..schemas.skips import DayCount, HourCount, ReasonCount, SkipPatterns
from ..schemas.step import SkipRecord

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
TOP_HOURS = 5

REASON_THRESHOLD = 3
TIME_OF_DAY_THRESHOLD = 3
DAY_OF_WEEK_THRESHOLD = 2
CONSECUTIVE_THRESHOLD = 3

REASON_SUGGESTIONS: Dict[str, str] = {
    "busy": "You've skipped for being too busy several times. Consider cutting back to 3 times a week or picking a quieter time of day.",
    "tired": "You're often too tired. Try scheduling this earlier in the day when your energy is higher.",
    "forgot": "Turn on reminders so you get a nudge at the time you committed to.",
}


def empty_patterns() -> SkipPatterns:
    return SkipPatterns(time_of_day=[], day_of_week=[], reasons=[], consecutive_skips=0)


def _day_name(record: SkipRecord) -> str:
    # datetime.weekday() is Monday-based; DAY_NAMES starts on Sunday.
    return DAY_NAMES[(record.skipped_at.weekday() + 1) % 7]


def _longest_consecutive_run(records: List[SkipRecord]) -> int:
    if not records:
        return 0
    ordered = sorted(records, key=lambda record: record.skipped_at)
    longest = 1
    run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current.skipped_at.date() - previous.skipped_at.date()).days <= 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def analyze_skips(records: List[SkipRecord]) -> SkipPatterns:
    if not records:
        return empty_patterns()

    hours: Dict[int, int] = {}
    days: Dict[str, int] = {name: 0 for name in DAY_NAMES}
    reasons: Dict[str, int] = {}
    for record in records:
        hour = record.skipped_at.hour
        hours[hour] = hours.get(hour, 0) + 1
        days[_day_name(record)] += 1
        reasons[record.reason] = reasons.get(record.reason, 0) + 1

    # sorted() is stable, so ties keep first-seen (or week) order.
    time_of_day = sorted(hours.items(), key=lambda item: -item[1])[:TOP_HOURS]
    day_of_week = sorted(days.items(), key=lambda item: -item[1])
    reason_counts = sorted(reasons.items(), key=lambda item: -item[1])

    return SkipPatterns(
        time_of_day=[HourCount(hour=hour, count=count) for hour, count in time_of_day],
        day_of_week=[DayCount(day=day, count=count) for day, count in day_of_week],
        reasons=[ReasonCount(reason=reason, count=count) for reason, count in reason_counts],
        consecutive_skips=_longest_consecutive_run(records),
    )


def period_of_day(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def recommend_schedule(patterns: SkipPatterns) -> List[str]:
    recommendations: List[str] = []

    if patterns.reasons and patterns.reasons[0].count >= REASON_THRESHOLD:
        top = patterns.reasons[0]
        recommendations.append(
            REASON_SUGGESTIONS.get(
                top.reason,
                f'"{top.reason}" keeps coming up as a reason to skip. Think about what would make this step easier to start.',
            )
        )

    if patterns.time_of_day and patterns.time_of_day[0].count >= TIME_OF_DAY_THRESHOLD:
        hour = patterns.time_of_day[0].hour
        recommendations.append(
            f"You often skip in the {period_of_day(hour)} (around {hour}:00). Consider trying a different time."
        )

    if patterns.day_of_week and patterns.day_of_week[0].count >= DAY_OF_WEEK_THRESHOLD:
        day = patterns.day_of_week[0].day
        recommendations.append(f"{day}s seem challenging. Consider focusing on other days or preparing in advance.")

    if patterns.consecutive_skips >= CONSECUTIVE_THRESHOLD:
        recommendations.append(
            "You've had several skips in a row. This goal may be too ambitious right now; try a smaller, easier version."
        )

    return recommendations
