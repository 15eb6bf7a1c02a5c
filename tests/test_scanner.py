from datetime import date, timedelta

from fleet_alerts.models.alert_log import AlertLevel, DocumentType, SubjectKind
from fleet_alerts.services.alert_service import classify
from fleet_alerts.services.documents import MonitoredSubject
from fleet_alerts.services.expiry_scanner import ExpiringDocument, MissingDocument, scan_expiries

TODAY = date(2026, 3, 2)


def _vehicle(expiries):
    return MonitoredSubject(
        kind=SubjectKind.VEHICLE,
        id=1,
        company_id=1,
        display_name="Renault T - AB-123-CD",
        expiries=expiries,
    )


def _driver(subject_id, expiries, email="driver@example.com"):
    return MonitoredSubject(
        kind=SubjectKind.DRIVER,
        id=subject_id,
        company_id=1,
        display_name=f"Driver {subject_id}",
        first_name="Driver",
        contact_email=email,
        expiries=expiries,
    )


def test_scanner_classifies_sample_fleet():
    subjects = [
        _vehicle({DocumentType.CT: TODAY, DocumentType.TACHY: None, DocumentType.ATP: None}),
        _driver(1, {DocumentType.LICENSE: TODAY + timedelta(days=60), DocumentType.CQC: None}),
        _driver(2, {DocumentType.LICENSE: TODAY + timedelta(days=400), DocumentType.CQC: None}),
    ]

    items = list(scan_expiries(subjects, TODAY))
    assert all(isinstance(item, ExpiringDocument) for item in items)

    levels = {(item.subject.kind, item.subject.id, item.spec.document_type): classify(item.days_remaining) for item in items}
    assert levels == {
        (SubjectKind.VEHICLE, 1, DocumentType.CT): AlertLevel.OVERDUE,
        (SubjectKind.DRIVER, 1, DocumentType.LICENSE): AlertLevel.REMINDER,
        (SubjectKind.DRIVER, 2, DocumentType.LICENSE): None,
    }


def test_null_optional_expiry_is_never_yielded():
    items = list(scan_expiries([_vehicle({DocumentType.CT: None})], TODAY))
    assert items == []


def test_null_required_expiry_is_reported_as_missing():
    items = list(scan_expiries([_driver(3, {DocumentType.LICENSE: None, DocumentType.CQC: TODAY})], TODAY))

    missing = [item for item in items if isinstance(item, MissingDocument)]
    expiring = [item for item in items if isinstance(item, ExpiringDocument)]
    assert len(missing) == 1
    assert missing[0].spec.document_type == DocumentType.LICENSE
    assert [item.spec.document_type for item in expiring] == [DocumentType.CQC]


def test_reference_date_can_depend_on_subject():
    vehicle = _vehicle({DocumentType.CT: TODAY + timedelta(days=10)})

    items = list(scan_expiries([vehicle], lambda subject: TODAY + timedelta(days=1)))
    assert items[0].days_remaining == 9


def test_blank_contact_email_means_unreachable():
    assert not _driver(4, {}, email="   ").is_reachable
    assert _driver(5, {}).is_reachable
