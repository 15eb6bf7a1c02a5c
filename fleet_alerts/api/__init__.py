from fleet_alerts.api.routers import api_router

__all__ = ["api_router"]
