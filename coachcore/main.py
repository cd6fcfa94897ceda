from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .log import configure_logging
from .orchestrator.records import record_store
from .routers.coach import router as coach_router
from .routers.habits import router as habits_router
from .routers.progress import router as progress_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    if settings.seed_file:
        await record_store.load_yaml(settings.seed_file)
    yield


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(progress_router)
app.include_router(habits_router)
app.include_router(coach_router)
