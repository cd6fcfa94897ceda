import re
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

StepStatus = Literal["not_started", "in_progress", "done", "skipped"]

WEEK_TOKEN = re.compile(r"Week (\d+)", re.IGNORECASE)
SESSION_TOKEN = re.compile(r"Session (\d+)", re.IGNORECASE)


class SkipRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # sick, busy, tired, not_ready, forgot or other; unknown reasons are kept as-is
    reason: str
    skipped_at: datetime = Field(alias="skippedAt")
    step_id: Optional[str] = Field(default=None, alias="stepId")
    custom_note: Optional[str] = Field(default=None, alias="customNote")


class StepOrdinal(BaseModel):
    week_number: int = Field(ge=1)
    session_number: Optional[int] = Field(default=None, ge=1)

    @property
    def is_main(self) -> bool:
        return self.session_number is not None


def ordinal_from_title(title: str) -> Optional[StepOrdinal]:
    """Recover a step's week/session ordinal from its title at creation time.

    A title with no "Week N" token has no ordinal, even when it mentions a
    session; such steps are exempt from week and session ordering.
    """
    week = WEEK_TOKEN.search(title or "")
    if not week or int(week.group(1)) == 0:
        return None
    session = SESSION_TOKEN.search(title)
    session_number = int(session.group(1)) if session else 0
    return StepOrdinal(week_number=int(week.group(1)), session_number=session_number or None)


class Step(BaseModel):
    id: str
    goal_id: str
    title: str = ""
    status: StepStatus = "not_started"
    due_date: Optional[date] = None
    updated_at: Optional[datetime] = None
    order_index: int = 0
    is_required: bool = True
    dependency_step_ids: List[str] = Field(default_factory=list)
    skip_reasons: List[SkipRecord] = Field(default_factory=list)
    ordinal: Optional[StepOrdinal] = None
    explainer: Optional[str] = None

    @model_validator(mode="after")
    def _ordinal_from_title(self) -> "Step":
        # An explicit ordinal wins over whatever the title says.
        if self.ordinal is None:
            self.ordinal = ordinal_from_title(self.title)
        return self

    @property
    def week_number(self) -> Optional[int]:
        return self.ordinal.week_number if self.ordinal else None

    @property
    def session_number(self) -> Optional[int]:
        return self.ordinal.session_number if self.ordinal else None
