from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from fleet_alerts.models.inspection import UrgencyLevel

logger = logging.getLogger(__name__)

CRITICAL_SCORE = 70
TIRE_POSITIONS = ("front_left", "front_right", "rear_left", "rear_right")
COMPONENT_GENERAL = "General"
COMPONENT_TIRES = "Pneumatiques"

URGENCY_SCORES = {
    UrgencyLevel.INTERVENTION_IMMEDIATE: 0.95,
    UrgencyLevel.CONTROLE_URGENT: 0.80,
    UrgencyLevel.CONTROLE_RECOMMANDE: 0.60,
    UrgencyLevel.SURVEILLANCE: 0.30,
}


@dataclass(frozen=True)
class InspectionSnapshot:
    id: int
    score: int
    tires_condition: str | None
    created_at: datetime


@dataclass(frozen=True)
class Prediction:
    current_score: int
    previous_score: int
    degradation_speed: float
    days_until_critical: int
    predicted_control_date: date
    urgency_level: UrgencyLevel
    urgency_score: float
    component_concerned: str
    reasoning: str
    linked_inspection_id: int


def urgency_for(current_score: int, days_until: int) -> UrgencyLevel:
    if current_score < CRITICAL_SCORE:
        return UrgencyLevel.INTERVENTION_IMMEDIATE
    if days_until <= 3:
        return UrgencyLevel.CONTROLE_URGENT
    if days_until <= 14:
        return UrgencyLevel.CONTROLE_RECOMMANDE
    return UrgencyLevel.SURVEILLANCE


def _parse_tires(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed tires_condition %r", raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _wear(tires: dict, position: str) -> str | None:
    wheel = tires.get(position)
    return wheel.get("wear") if isinstance(wheel, dict) else None


def component_concerned(current: InspectionSnapshot, previous: InspectionSnapshot) -> str:
    """Tires when a wheel went from OK to anything else between the two inspections."""
    current_tires = _parse_tires(current.tires_condition)
    previous_tires = _parse_tires(previous.tires_condition)
    for position in TIRE_POSITIONS:
        if _wear(previous_tires, position) == "OK" and _wear(current_tires, position) != "OK":
            return COMPONENT_TIRES
    return COMPONENT_GENERAL


def predict_degradation(
    current: InspectionSnapshot,
    previous: InspectionSnapshot,
    today: date,
) -> Prediction | None:
    """Extrapolate the score trend of the two latest inspections down to the critical score.

    Returns None when the inspections are less than a day apart or the score is
    stable or improving.
    """
    days_between = (current.created_at - previous.created_at).total_seconds() / 86400
    if days_between < 1:
        return None

    speed = (previous.score - current.score) / days_between
    if speed <= 0:
        return None

    days_until = math.floor((current.score - CRITICAL_SCORE) / speed)
    level = urgency_for(current.score, days_until)
    return Prediction(
        current_score=current.score,
        previous_score=previous.score,
        degradation_speed=round(speed, 2),
        days_until_critical=max(0, days_until),
        predicted_control_date=today + timedelta(days=max(1, days_until)),
        urgency_level=level,
        urgency_score=URGENCY_SCORES[level],
        component_concerned=component_concerned(current, previous),
        reasoning=f"Score {previous.score}->{current.score} en {round(days_between)}j",
        linked_inspection_id=current.id,
    )
