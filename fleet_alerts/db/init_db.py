from sqlalchemy.ext.asyncio import AsyncEngine

from fleet_alerts.core.config import get_settings
from fleet_alerts.db.base import Base
from fleet_alerts.db.session import engine
from fleet_alerts.models import (  # noqa: F401
    Company,
    DocumentAlertLog,
    Driver,
    MaintenanceRecord,
    MaintenanceReminderLog,
    Member,
    PredictiveAlert,
    Vehicle,
    VehicleInspection,
)
from fleet_alerts.services.audit_log_service import log_event

settings = get_settings()


def expected_columns() -> dict[str, set[str]]:
    return {table.name: {column.name for column in table.columns} for table in Base.metadata.sorted_tables}


async def _sqlite_schema_mismatch(target: AsyncEngine) -> bool:
    async with target.connect() as conn:
        for table, expected in expected_columns().items():
            result = await conn.exec_driver_sql(f"PRAGMA table_info({table})")
            columns = {row[1] for row in result.fetchall()}
            if columns and not expected.issubset(columns):
                return True
    return False


async def init_db(target: AsyncEngine = engine) -> None:
    should_reset = settings.reset_db_on_startup
    is_sqlite = target.url.get_backend_name() == "sqlite"
    if not should_reset and is_sqlite and settings.auto_reset_sqlite_on_schema_mismatch:
        should_reset = await _sqlite_schema_mismatch(target)

    async with target.begin() as conn:
        if should_reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    if should_reset:
        log_event("reset_database", f"url={target.url.render_as_string(hide_password=True)}")
