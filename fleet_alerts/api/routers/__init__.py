from fastapi import APIRouter

from fleet_alerts.api.routers.alert_logs import router as alert_logs_router
from fleet_alerts.api.routers.companies import router as companies_router
from fleet_alerts.api.routers.cron import router as cron_router
from fleet_alerts.api.routers.drivers import router as drivers_router
from fleet_alerts.api.routers.inspections import router as inspections_router
from fleet_alerts.api.routers.maintenance import router as maintenance_router
from fleet_alerts.api.routers.reporting import router as reporting_router
from fleet_alerts.api.routers.tools import router as tools_router
from fleet_alerts.api.routers.vehicles import router as vehicles_router

api_router = APIRouter()
api_router.include_router(companies_router)
api_router.include_router(vehicles_router)
api_router.include_router(drivers_router)
api_router.include_router(maintenance_router)
api_router.include_router(inspections_router)
api_router.include_router(alert_logs_router)
api_router.include_router(reporting_router)
api_router.include_router(cron_router)
api_router.include_router(tools_router)

__all__ = ["api_router"]
