from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from ..config import get_settings
from ..orchestrator.analytics import build_coach_dashboard
from ..orchestrator.dashboard import build_dashboard
from ..orchestrator.records import record_store
from ..orchestrator.status import classify
from ..schemas.dashboard import DashboardFilters, DashboardSnapshot, StatusSignals
from .payloads import parse_model, parse_now

router = APIRouter(prefix="", tags=["coach"])


@router.post("/status/classify")
async def classify_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    signals = parse_model(StatusSignals, body.get("signals", body))
    return {"status": classify(signals)}


@router.post("/coach/dashboard")
async def dashboard_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    filters = parse_model(DashboardFilters, body.get("filters") or {})
    now = parse_now(body)
    lookback_days = get_settings().lookback_days
    if body.get("snapshot") is not None:
        snapshot = parse_model(DashboardSnapshot, body["snapshot"])
        learner_ids = body.get("learnerIds") or [profile.user_id for profile in snapshot.profiles]
        data = build_dashboard(learner_ids, snapshot, filters, now, lookback_days)
    elif body.get("coachId"):
        data = await build_coach_dashboard(body["coachId"], filters, now, lookback_days=lookback_days)
    else:
        raise HTTPException(status_code=400, detail="coachId or snapshot required")
    return data.model_dump(mode="json")


@router.post("/records/seed")
async def seed_endpoint(body: Dict[str, Any]) -> Dict[str, Any]:
    try:
        counts = await record_store.seed(body)
    except ValidationError as error:
        raise HTTPException(status_code=400, detail=f"Invalid snapshot: {error.errors()[0]['msg']}") from error
    return {"status": "seeded", "counts": counts}
