from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class AlertThresholds(BaseModel):
    """Day counts at or under which each alert level applies."""

    reminder_days: int = 60
    urgent_days: int = 30
    overdue_days: int = 0

    @model_validator(mode="after")
    def _check_order(self) -> "AlertThresholds":
        if not self.overdue_days < self.urgent_days < self.reminder_days:
            raise ValueError("thresholds must satisfy overdue_days < urgent_days < reminder_days")
        return self


class EmailConfig(BaseModel):
    brand_name: str = "FleetMaster"
    footer: str = "FleetMaster Pro - alerte automatique, ne pas repondre a cet email"


class AlertsConfig(BaseModel):
    default_thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    # Keyed by document type value, e.g. {"CQC": {"reminder_days": 90, ...}}
    thresholds: dict[str, AlertThresholds] = Field(default_factory=dict)

    def thresholds_for(self, document_type: str) -> AlertThresholds:
        return self.thresholds.get(document_type, self.default_thresholds)


class AppJSONConfig(BaseModel):
    app_name: str = "FleetMaster Alerts"
    email: EmailConfig = Field(default_factory=EmailConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)


def load_app_json_config(path: Path) -> AppJSONConfig:
    if not path.exists():
        return AppJSONConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Unreadable app config %s, using defaults", path)
        return AppJSONConfig()

    try:
        return AppJSONConfig.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid app config %s, using defaults: %s", path, exc)
        return AppJSONConfig()


@lru_cache
def get_app_json_config() -> AppJSONConfig:
    return load_app_json_config(Path("config/app_config.json"))
