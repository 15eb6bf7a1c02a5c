import hmac

from fastapi import Depends, HTTPException, Request, status

from fleet_alerts.core.config import Settings, get_settings
from fleet_alerts.core.errors import AuthorizationError
from fleet_alerts.db.session import get_db_session
from fleet_alerts.messaging.channels import NotificationChannel, build_notification_channel

__all__ = [
    "get_db_session",
    "get_notification_channel",
    "get_settings",
    "require_cron_secret",
    "verify_cron_secret",
]


def _presented_secret(request: Request) -> str | None:
    header = request.headers.get("x-cron-secret")
    if header:
        return header

    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()

    return request.query_params.get("secret")


def verify_cron_secret(presented: str | None, settings: Settings) -> None:
    if settings.cron_secret is None or not settings.cron_secret.get_secret_value():
        raise AuthorizationError("cron secret is not configured")
    if presented is None:
        raise AuthorizationError("missing cron secret")
    expected = settings.cron_secret.get_secret_value()
    if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        raise AuthorizationError("invalid cron secret")


async def require_cron_secret(request: Request, settings: Settings = Depends(get_settings)) -> None:
    try:
        verify_cron_secret(_presented_secret(request), settings)
    except AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc


def get_notification_channel(settings: Settings = Depends(get_settings)) -> NotificationChannel:
    return build_notification_channel(settings)
