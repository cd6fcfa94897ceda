from datetime import datetime, timezone
from typing import Any, Dict, List, Type, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


def parse_model(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as error:
        raise HTTPException(status_code=400, detail=f"Invalid {model.__name__}: {error.errors()[0]['msg']}") from error


def parse_models(model: Type[M], items: Any) -> List[M]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise HTTPException(status_code=400, detail=f"{model.__name__} list expected")
    return [parse_model(model, item) for item in items]


def parse_now(body: Dict[str, Any]) -> datetime:
    raw = body.get("now")
    if not raw:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError as error:
        raise HTTPException(status_code=400, detail="now must be an ISO-8601 timestamp") from error


def require(body: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if body.get(key) is not None:
            return body[key]
    raise HTTPException(status_code=400, detail=f"{keys[0]} required")
