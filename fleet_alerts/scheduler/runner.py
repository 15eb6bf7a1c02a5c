from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleet_alerts.core.config import Settings, get_settings
from fleet_alerts.messaging.channels import NotificationChannel, build_notification_channel
from fleet_alerts.scheduler.jobs import (
    run_cleanup,
    run_document_expiry_check,
    run_maintenance_reminders,
    run_predictive_alerts,
)

logger = logging.getLogger(__name__)


class DailyScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        run_hour: int = 8,
        run_minute: int = 0,
        settings: Settings | None = None,
        channel: NotificationChannel | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.run_hour = run_hour
        self.run_minute = run_minute
        self.settings = settings or get_settings()
        self.channel = channel or build_notification_channel(self.settings)
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        self._stopped.set()
        if self._task:
            await self._task

    async def run_once(self) -> dict[str, int]:
        """Run every daily job; each job gets its own session."""
        async with self.session_factory() as session:
            documents = await run_document_expiry_check(session, self.channel, settings=self.settings)
        async with self.session_factory() as session:
            reminders = await run_maintenance_reminders(session, self.channel, settings=self.settings)
        async with self.session_factory() as session:
            predictive = await run_predictive_alerts(session, settings=self.settings)
        async with self.session_factory() as session:
            cleanup = await run_cleanup(session, settings=self.settings)
        return {
            "document_alerts_sent": documents.alerts_sent,
            "document_alerts_failed": documents.alerts_failed,
            "maintenance_reminders_sent": reminders.emails_sent,
            "maintenance_reminders_failed": reminders.errors,
            "predictive_alerts_created": predictive.alerts_created,
            "logs_purged": cleanup.document_alert_logs_deleted + cleanup.maintenance_reminder_logs_deleted,
        }

    async def _run_loop(self) -> None:
        while not self._stopped.is_set():
            delay_seconds = self._seconds_until_next_run()
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=delay_seconds)
                break
            except asyncio.TimeoutError:
                pass

            try:
                result = await self.run_once()
                logger.info("Daily alert jobs completed: %s", result)
            except Exception:
                logger.exception("Daily alert jobs failed")

    def _seconds_until_next_run(self) -> float:
        now = datetime.now(ZoneInfo(self.settings.reference_timezone))
        next_run = now.replace(hour=self.run_hour, minute=self.run_minute, second=0, microsecond=0)
        if next_run <= now:
            next_run += timedelta(days=1)
        return (next_run - now).total_seconds()
