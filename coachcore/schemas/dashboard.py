from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .goal import CheckIn, Cohort, CohortMember, Goal, LearnerProfile, SupportAction
from .progress import WeeklyCompletion
from .step import Step

StudentStatus = Literal["on_track", "at_risk", "stuck", "no_data"]
SupporterScope = Literal["me", "all"]


class StatusSignals(BaseModel):
    planned_count: int = 0
    completed_count: int = 0
    overdue_count: int = 0
    oldest_overdue_hours: float = 0
    hours_since_last_check_in: float = 0
    average_difficulty: float = 0


class CurrentGoal(BaseModel):
    id: str
    title: str
    type: str


class StudentData(BaseModel):
    user_id: str
    first_name: str
    avatar_url: Optional[str] = None
    grade: Optional[str] = None
    cohort_id: Optional[str] = None
    cohort_name: Optional[str] = None
    status: StudentStatus
    current_goal: Optional[CurrentGoal] = None
    this_week_progress: WeeklyCompletion
    streak_days: int
    overdue_count: int
    last_check_in: Optional[datetime] = None
    average_difficulty: float = 0
    recent_blockers: List[str] = Field(default_factory=list)


class CohortStats(BaseModel):
    on_track: int = 0
    at_risk: int = 0
    stuck: int = 0
    no_data: int = 0
    total_overdue: int = 0
    interventions_last_7_days: int = 0


class DashboardFilters(BaseModel):
    cohort_id: Optional[str] = None
    grade: Optional[str] = None
    status: Optional[StudentStatus] = None
    supporter_scope: SupporterScope = "all"


class DashboardSnapshot(BaseModel):
    coach_id: Optional[str] = None
    profiles: List[LearnerProfile] = Field(default_factory=list)
    cohorts: List[Cohort] = Field(default_factory=list)
    cohort_members: List[CohortMember] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    check_ins: List[CheckIn] = Field(default_factory=list)
    support_actions: List[SupportAction] = Field(default_factory=list)


class DashboardData(BaseModel):
    students: List[StudentData] = Field(default_factory=list)
    stats: CohortStats = Field(default_factory=CohortStats)
    cohorts: List[Cohort] = Field(default_factory=list)
