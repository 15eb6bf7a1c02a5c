from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import date

from fleet_alerts.services.documents import DocumentSpec, MonitoredSubject, documents_for


@dataclass(frozen=True)
class ExpiringDocument:
    subject: MonitoredSubject
    spec: DocumentSpec
    expiry_date: date
    days_remaining: int


@dataclass(frozen=True)
class MissingDocument:
    """A required document with no expiry date on record."""

    subject: MonitoredSubject
    spec: DocumentSpec


def days_until(expiry_date: date, today: date) -> int:
    return (expiry_date - today).days


def scan_expiries(
    subjects: Iterable[MonitoredSubject],
    today: date | Callable[[MonitoredSubject], date],
) -> Iterator[ExpiringDocument | MissingDocument]:
    """Yield one item per (subject, document type) that has something to say.

    ``today`` is either a fixed date or a callable giving the reference date of
    a subject (its company's timezone).
    """
    for subject in subjects:
        reference = today(subject) if callable(today) else today
        for spec in documents_for(subject.kind):
            expiry_date = subject.expiries.get(spec.document_type)
            if expiry_date is None:
                if spec.required:
                    yield MissingDocument(subject=subject, spec=spec)
                continue
            yield ExpiringDocument(
                subject=subject,
                spec=spec,
                expiry_date=expiry_date,
                days_remaining=days_until(expiry_date, reference),
            )
