import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from fleet_alerts.api import api_router
from fleet_alerts.core.app_config import get_app_json_config
from fleet_alerts.core.config import get_settings
from fleet_alerts.db.init_db import init_db
from fleet_alerts.db.session import SessionLocal
from fleet_alerts.scheduler import DailyScheduler

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()
app_json = get_app_json_config()
scheduler = DailyScheduler(
    session_factory=SessionLocal,
    run_hour=settings.scheduler_run_hour,
    run_minute=settings.scheduler_run_minute,
    settings=settings,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    await init_db()

    if settings.scheduler_enabled:
        scheduler.start()

    yield

    if settings.scheduler_enabled:
        await scheduler.stop()


app = FastAPI(title=app_json.app_name, lifespan=lifespan)
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.uvicorn_host,
        port=settings.uvicorn_port,
        reload=settings.uvicorn_reload,
    )
