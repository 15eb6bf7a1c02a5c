from fastapi import APIRouter, Query

from fleet_alerts.services.audit_log_service import read_recent_logs

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("/logs")
async def get_recent_logs(limit: int = Query(default=200, ge=1, le=2000)) -> dict:
    return {"lines": read_recent_logs(limit=limit)}
