from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ..orchestrator.progression import can_complete, next_step_suggestions
from ..orchestrator.streaks import (
    compute_streak,
    is_streak_at_risk,
    last_completed_at,
    streak_milestone,
    streak_updates,
    week_start,
    weekly_completion,
    weekly_habit_report,
)
from ..schemas.goal import Goal
from ..schemas.step import Step, ordinal_from_title
from .payloads import parse_model, parse_models, parse_now, require

router = APIRouter(prefix="/progress", tags=["progress"])


@router.post("/can-complete")
async def can_complete_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    step_id = require(body, "stepId", "step_id")
    steps = parse_models(Step, body.get("steps"))
    goal = parse_model(Goal, body["goal"]) if body.get("goal") else None
    result = can_complete(step_id, steps, goal)
    payload = result.model_dump(mode="json")
    payload["suggestions"] = next_step_suggestions(result.blocked_by)
    return payload


@router.post("/streak")
async def streak_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    steps = parse_models(Step, body.get("steps"))
    now = parse_now(body)
    streak = compute_streak(steps, now)
    payload = streak.model_dump()
    payload["milestone"] = streak_milestone(streak.current_streak)
    payload["at_risk"] = is_streak_at_risk(last_completed_at(steps), streak.current_streak, now)
    if body.get("goal"):
        payload["updates"] = streak_updates(parse_model(Goal, body["goal"]), streak)
    return payload


@router.post("/weekly")
async def weekly_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    return weekly_completion(parse_models(Step, body.get("steps")), parse_now(body)).model_dump()


@router.post("/weekly-report")
async def weekly_report_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    goal = parse_model(Goal, require(body, "goal"))
    steps = parse_models(Step, body.get("steps"))
    if body.get("weekStart"):
        try:
            start = date.fromisoformat(body["weekStart"])
        except ValueError as error:
            raise HTTPException(status_code=400, detail="weekStart must be YYYY-MM-DD") from error
    else:
        start = week_start(parse_now(body))
    return weekly_habit_report(steps, goal, start).model_dump()


@router.post("/ordinal")
async def ordinal_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    ordinal = ordinal_from_title(require(body, "title"))
    return {"ordinal": ordinal.model_dump() if ordinal else None}
