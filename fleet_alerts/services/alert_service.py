from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fleet_alerts.core.app_config import AlertThresholds
from fleet_alerts.models.alert_log import AlertLevel

DEFAULT_THRESHOLDS = AlertThresholds()


def classify(days_remaining: int, thresholds: AlertThresholds = DEFAULT_THRESHOLDS) -> AlertLevel | None:
    if days_remaining <= thresholds.overdue_days:
        return AlertLevel.OVERDUE
    if days_remaining <= thresholds.urgent_days:
        return AlertLevel.URGENT
    if days_remaining <= thresholds.reminder_days:
        return AlertLevel.REMINDER
    return None


def local_today(timezone_name: str | None, fallback: str = "UTC") -> date:
    """Current date in the given IANA timezone, or in ``fallback`` if unknown."""
    for name in (timezone_name, fallback):
        if not name:
            continue
        try:
            return datetime.now(ZoneInfo(name)).date()
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return datetime.now(ZoneInfo("UTC")).date()
