from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ..orchestrator.analytics import get_habit_analytics
from ..orchestrator.skips import analyze_skips, recommend_schedule
from ..schemas.skips import SkipPatterns
from ..schemas.step import SkipRecord
from .payloads import parse_model, parse_models, parse_now, require

router = APIRouter(prefix="", tags=["habits"])


@router.post("/skips/analyze")
async def analyze_skips_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    records = parse_models(SkipRecord, body.get("skipRecords", body.get("skip_records")))
    patterns = analyze_skips(records)
    payload = patterns.model_dump()
    if body.get("withRecommendations"):
        payload["recommendations"] = recommend_schedule(patterns)
    return payload


@router.post("/skips/recommend")
async def recommend_endpoint(body: Dict[str, Any]) -> List[str]:
    patterns = parse_model(SkipPatterns, require(body, "patterns"))
    return recommend_schedule(patterns)


@router.post("/habits/analytics")
async def habit_analytics_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    goal_id = require(body, "goalId", "goal_id")
    analytics = await get_habit_analytics(goal_id, parse_now(body))
    if analytics is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return analytics.model_dump()
