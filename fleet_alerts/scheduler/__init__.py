from fleet_alerts.scheduler.runner import DailyScheduler

__all__ = ["DailyScheduler"]
