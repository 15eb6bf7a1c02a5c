from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time

from fleet_alerts.models.alert_log import AlertLevel, SubjectKind

MONTHS_FR = (
    "janvier", "fevrier", "mars", "avril", "mai", "juin",
    "juillet", "aout", "septembre", "octobre", "novembre", "decembre",
)
WEEKDAYS_FR = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")


@dataclass(frozen=True)
class Message:
    to: str
    subject: str
    body: str


def format_date_fr(value: date, with_weekday: bool = False) -> str:
    text = f"{value.day:02d} {MONTHS_FR[value.month - 1]} {value.year}"
    if with_weekday:
        text = f"{WEEKDAYS_FR[value.weekday()]} {text}"
    return text


def format_time_fr(value: time) -> str:
    return f"{value.hour:02d}h{value.minute:02d}"


def format_duration(estimated_days: int | None, estimated_hours: int | None) -> str:
    days = estimated_days or 0
    hours = estimated_hours or 0
    if days > 0 and hours > 0:
        return f"{days} jour(s) et {hours}h"
    if days > 0:
        return f"{days} jour(s)"
    if hours > 0:
        return f"{hours}h estimee(s)"
    return "Non precisee"


def _status_line(level: AlertLevel, days_remaining: int) -> str:
    if level == AlertLevel.OVERDUE:
        return f"EXPIRE depuis {abs(days_remaining)} jour(s)" if days_remaining < 0 else "EXPIRE aujourd'hui"
    return f"expire dans {days_remaining} jour(s)"


def _headline(level: AlertLevel, document_label: str, days_remaining: int) -> str:
    if level == AlertLevel.OVERDUE:
        return f"{document_label} EXPIRE - immobilisation obligatoire jusqu'au renouvellement."
    if level == AlertLevel.URGENT:
        return f"{document_label} - echeance dans {days_remaining} jours, action urgente requise."
    return f"Rappel - {document_label} arrive a echeance dans {days_remaining} jours."


def build_document_alert_message(
    *,
    to: str,
    brand_name: str,
    footer: str,
    subject_kind: SubjectKind,
    subject_name: str,
    subject_first_name: str | None,
    document_label: str,
    level: AlertLevel,
    days_remaining: int,
    expiry_date: date,
    addressed_to_subject: bool = False,
    subject_unreachable: bool = False,
) -> Message:
    kind_label = "vehicule" if subject_kind == SubjectKind.VEHICLE else "conducteur"
    title = f"[{brand_name}] Alerte documents {kind_label} - {subject_name}"
    if subject_unreachable:
        title = f"[{brand_name}] Conducteur non joignable - Alerte documents - {subject_name}"

    if addressed_to_subject:
        greeting = f"Bonjour {subject_first_name or subject_name},"
        intro = f"Votre document {document_label} {_status_line(level, days_remaining)}."
    else:
        greeting = f"Alerte concernant le {kind_label} {subject_name} :"
        intro = f"Document {document_label} : {_status_line(level, days_remaining)}."

    lines = [
        greeting,
        "",
        _headline(level, document_label, days_remaining),
        intro,
        "",
        f"{kind_label.capitalize()} : {subject_name}",
        f"Document : {document_label}",
        f"Date d'expiration : {format_date_fr(expiry_date)}",
        f"Niveau : {level.value}",
    ]
    if subject_unreachable:
        lines += [
            "",
            "Ce conducteur n'a pas d'adresse email dans le systeme et ne peut pas etre notifie directement.",
            "Veuillez le contacter manuellement.",
        ]
    lines += ["", footer]
    return Message(to=to, subject=title, body="\n".join(lines))


def build_maintenance_reminder_message(
    *,
    to: str,
    footer: str,
    vehicle_label: str,
    rdv_date: date,
    rdv_time: time,
    garage_name: str | None,
    garage_address: str | None,
    duration_label: str,
    detail_url: str,
) -> Message:
    lines = [
        f"Un RDV de maintenance est prevu demain pour le vehicule {vehicle_label}.",
        "",
        f"Vehicule : {vehicle_label}",
        f"Date : {format_date_fr(rdv_date, with_weekday=True)}",
        f"Heure : {format_time_fr(rdv_time)}",
        f"Garage : {garage_name or 'Non renseigne'}",
    ]
    if garage_address:
        lines.append(f"Adresse : {garage_address}")
    lines += [
        f"Duree estimee : {duration_label}",
        "",
        "Pensez a preparer le vehicule (documents de bord, cles de rechange) et a informer le conducteur.",
        f"Detail de l'intervention : {detail_url}",
        "",
        footer,
    ]
    return Message(to=to, subject=f"Rappel RDV maintenance demain - {vehicle_label}", body="\n".join(lines))
