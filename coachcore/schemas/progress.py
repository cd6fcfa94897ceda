from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .step import Step

BlockReason = Literal[
    "Step not found",
    "Already completed",
    "Missing dependencies",
    "Dependency cycle",
    "Previous weeks incomplete",
    "Previous sessions incomplete",
    "Main step not completed",
]

StreakMilestone = Literal["bronze", "silver", "gold", "platinum"]


class ValidationResult(BaseModel):
    can_complete: bool
    reason: Optional[BlockReason] = None
    friendly_message: Optional[str] = None
    blocked_by: List[Step] = Field(default_factory=list)


class StreakResult(BaseModel):
    current_streak: int
    longest_streak: int


class WeeklyCompletion(BaseModel):
    completed: int
    planned: int
    percentage: int


class WeeklyHabitReport(BaseModel):
    completions: int
    skips: int
    completion_rate: float
    streak_maintained: bool
