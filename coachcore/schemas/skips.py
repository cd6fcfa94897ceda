from typing import List, Optional

from pydantic import BaseModel, Field


class HourCount(BaseModel):
    hour: int
    count: int


class DayCount(BaseModel):
    day: str
    count: int


class ReasonCount(BaseModel):
    reason: str
    count: int


class SkipPatterns(BaseModel):
    time_of_day: List[HourCount] = Field(default_factory=list)
    day_of_week: List[DayCount] = Field(default_factory=list)
    reasons: List[ReasonCount] = Field(default_factory=list)
    consecutive_skips: int = 0


class HabitAnalytics(BaseModel):
    goal_id: str
    total_completions: int
    current_streak: int
    longest_streak: int
    completion_rate: float
    average_skips_per_week: float
    most_common_skip_reason: Optional[str] = None
    skip_patterns: SkipPatterns
    recommendations: List[str] = Field(default_factory=list)
