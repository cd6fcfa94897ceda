import pathlib
import sys
from datetime import datetime, timezone

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from coachcore.orchestrator.analytics import (  # noqa: E402
    analyze_goal_skips,
    build_coach_dashboard,
    get_habit_analytics,
)
from coachcore.orchestrator.records import RecordStore  # noqa: E402
from coachcore.orchestrator.skips import empty_patterns  # noqa: E402
from coachcore.schemas.dashboard import DashboardFilters  # noqa: E402

FIXTURE = ROOT / "fixtures" / "demo_cohort.yaml"
NOW = datetime(2025, 6, 11, 12, 0, tzinfo=timezone.utc)


class BrokenStore(RecordStore):
    async def list_steps(self, goal_ids):
        raise ConnectionError("records unavailable")


@pytest.mark.asyncio
async def test_load_yaml_seed():
    store = RecordStore()
    counts = await store.load_yaml(FIXTURE)
    assert counts["profiles"] == 3
    assert counts["steps"] == 3
    assert await store.learners_for_coach("coach-1") == ["learner-ada", "learner-ben"]
    assert await store.learners_for_coach("nobody") == []


@pytest.mark.asyncio
async def test_store_returns_copies():
    store = RecordStore()
    await store.load_yaml(FIXTURE)
    steps = await store.list_steps(["goal-ada"])
    steps[0].title = "changed"
    again = await store.list_steps(["goal-ada"])
    assert again[0].title == "Week 1 Session 1 - Easy jog"


@pytest.mark.asyncio
async def test_analyze_goal_skips_flattens_step_records():
    store = RecordStore()
    await store.load_yaml(FIXTURE)
    patterns = await analyze_goal_skips("goal-ben", store)
    assert patterns.reasons[0].reason == "busy"
    assert patterns.reasons[0].count == 2
    assert patterns.consecutive_skips == 2


@pytest.mark.asyncio
async def test_fetch_failure_degrades_to_empty_patterns():
    store = BrokenStore()
    await store.load_yaml(FIXTURE)
    assert await analyze_goal_skips("goal-ben", store) == empty_patterns()


@pytest.mark.asyncio
async def test_habit_analytics():
    store = RecordStore()
    await store.load_yaml(FIXTURE)
    analytics = await get_habit_analytics("goal-ada", NOW, store)
    assert analytics.total_completions == 1
    assert analytics.completion_rate == 50
    assert analytics.current_streak == 0
    assert analytics.longest_streak == 1
    assert analytics.most_common_skip_reason is None
    assert await get_habit_analytics("missing", NOW, store) is None


@pytest.mark.asyncio
async def test_habit_analytics_degrades_when_steps_are_unreadable():
    store = BrokenStore()
    await store.load_yaml(FIXTURE)
    analytics = await get_habit_analytics("goal-ben", NOW, store)
    assert analytics.total_completions == 0
    assert analytics.completion_rate == 0
    assert analytics.skip_patterns == empty_patterns()
    assert analytics.recommendations == []


@pytest.mark.asyncio
async def test_build_coach_dashboard_from_store():
    store = RecordStore()
    await store.load_yaml(FIXTURE)
    data = await build_coach_dashboard("coach-1", DashboardFilters(), NOW, store)
    students = {student.user_id: student for student in data.students}
    assert set(students) == {"learner-ada", "learner-ben"}
    assert students["learner-ada"].status == "at_risk"
    assert students["learner-ben"].status == "no_data"
    assert data.stats.interventions_last_7_days == 1
    assert [cohort.name for cohort in data.cohorts] == ["Morning Crew"]


@pytest.mark.asyncio
async def test_unknown_coach_gets_empty_dashboard():
    store = RecordStore()
    await store.load_yaml(FIXTURE)
    data = await build_coach_dashboard("coach-404", None, NOW, store)
    assert data.students == []
    assert data.stats.on_track == 0
