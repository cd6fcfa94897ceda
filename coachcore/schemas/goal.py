from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Goal(BaseModel):
    id: str
    owner_id: str
    title: str = ""
    goal_type: Optional[str] = None
    frequency_per_week: int = 7
    streak_count: int = 0
    longest_streak: int = 0
    created_at: Optional[datetime] = None
    status: str = "active"


class CheckIn(BaseModel):
    user_id: str
    goal_id: Optional[str] = None
    created_at: datetime
    difficulty: Optional[float] = Field(default=None, ge=1, le=5)
    blocker_tags: List[str] = Field(default_factory=list)

    @field_validator("blocker_tags", mode="before")
    @classmethod
    def _none_tags(cls, value):
        return value or []


class LearnerProfile(BaseModel):
    user_id: str
    first_name: Optional[str] = None
    avatar_url: Optional[str] = None
    grade: Optional[str] = None


class Cohort(BaseModel):
    id: str
    name: str


class CohortMember(BaseModel):
    individual_id: str
    cohort_id: str


class SupportAction(BaseModel):
    student_id: str
    coach_id: str
    created_at: datetime


class SupporterLink(BaseModel):
    supporter_id: str
    individual_id: str
    role: str = "coach"
