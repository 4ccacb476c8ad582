"""
Service-level tests for scoring, persisting and routing check-ins.
"""

import logging

import pytest

from kisan_sahay.core.errors import ApiError, ErrorCode
from kisan_sahay.db.session import SessionLocal
from kisan_sahay.models.alert import Alert, AlertSeverity
from kisan_sahay.models.checkin import CheckIn, RiskLevel
from kisan_sahay.models.farmer import FarmerStatus, PreferredLanguage
from kisan_sahay.schemas.checkin import CheckInCreate
from kisan_sahay.services.alert_service import AlertService
from kisan_sahay.services.checkin_service import CheckinService, decode_factors, encode_factors


def payload(**overrides) -> CheckInCreate:
    values = dict(
        cropCondition="excellent",
        loanPressure="none",
        sleepQuality="good",
        familySupport="strong",
        hopeLevel=10,
        notes=None,
    )
    values.update(overrides)
    return CheckInCreate(**values)


class TestCreateCheckin:
    def test_calm_checkin_is_stored_without_alert(self, db, make_farmer):
        farmer = make_farmer()

        result = CheckinService.create_checkin(db, farmer, payload())

        assert result.checkin.id is not None
        assert result.checkin.risk_level == RiskLevel.LOW
        assert not result.checkin.alert_triggered
        assert result.alert is None
        assert result.feedback.suggestions[0].key == "agriculture"
        db.refresh(farmer)
        assert farmer.last_active_at is not None

    def test_crisis_note_alerts_and_routes_to_counselor(self, db, make_farmer, make_admin):
        counselor = make_admin()
        farmer = make_farmer(counselor_id=counselor.id)

        result = CheckinService.create_checkin(db, farmer, payload(notes="I will drink poison"))

        assert result.checkin.risk_score == 60
        assert result.checkin.risk_level == RiskLevel.HIGH
        assert result.decision.severity == AlertSeverity.HIGH
        assert result.alert.assigned_to_id == counselor.id
        assert result.checkin.counselor_notified
        assert decode_factors(result.checkin.critical_factors) == ["crisis_keywords_detected", "poison"]
        assert result.feedback.show_emergency

    def test_critical_checkin_puts_farmer_on_watch(self, db, make_farmer):
        farmer = make_farmer()

        result = CheckinService.create_checkin(db, farmer, payload(
            cropCondition="destroyed", loanPressure="severe", sleepQuality="very_poor",
            familySupport="none", hopeLevel=1, notes="I want to end it, suicide",
        ))

        assert result.checkin.risk_score == 100
        assert result.alert.severity == AlertSeverity.CRITICAL
        db.refresh(farmer)
        assert farmer.status == FarmerStatus.CRITICAL_WATCH

    def test_notes_scored_in_farmer_language(self, db, make_farmer):
        farmer = make_farmer(preferred_lang=PreferredLanguage.MR)

        result = CheckinService.create_checkin(db, farmer, payload(notes="मला आत्महत्या करावीशी वाटते"))

        assert result.assessment.sentiment.risk_indicators == ("आत्महत्या",)
        assert result.checkin.alert_triggered

    def test_routing_failure_keeps_checkin_for_reconciliation(self, db, make_farmer, monkeypatch):
        farmer = make_farmer()

        def boom(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(AlertService, "route_alert", staticmethod(boom))

        with pytest.raises(ApiError) as excinfo:
            CheckinService.create_checkin(db, farmer, payload(notes="poison"))

        error = excinfo.value
        assert error.status_code == 500
        assert error.code == ErrorCode.INTERNAL_ERROR
        saved = db.get(CheckIn, error.details["checkInId"])
        assert saved.alert_triggered
        assert db.query(Alert).count() == 0

        monkeypatch.undo()
        assert AlertService.reconcile_missing_alerts(db) == 1

    def test_reconciliation_racing_the_request_reuses_its_alert(self, db, make_farmer, make_admin, monkeypatch):
        counselor = make_admin()
        farmer = make_farmer(counselor_id=counselor.id)
        real_commit = db.commit
        commits = []
        reconciled = []

        def commit_with_job_in_between():
            commits.append(1)
            if len(commits) == 2:
                # the hourly job lands after the check-in commit, before the alert commit
                other = SessionLocal()
                try:
                    reconciled.append(AlertService.reconcile_missing_alerts(other))
                finally:
                    other.close()
            real_commit()

        monkeypatch.setattr(db, "commit", commit_with_job_in_between)

        result = CheckinService.create_checkin(db, farmer, payload(notes="poison"))

        assert reconciled == [1]
        assert db.query(Alert).count() == 1
        alert = db.query(Alert).one()
        assert result.alert.id == alert.id
        assert alert.checkin_id == result.checkin.id
        assert alert.assigned_to_id == counselor.id
        assert result.checkin.counselor_notified


class TestNotifyCounselor:
    def test_sends_alert(self, notifier):
        CheckinService.notify_counselor(notifier, "9123400001", "Ramesh", RiskLevel.CRITICAL, "Pune")

        assert notifier.alerts == [("9123400001", "Ramesh", "CRITICAL", "Pune")]

    def test_missing_contact_is_skipped(self, notifier):
        CheckinService.notify_counselor(notifier, None, "Ramesh", RiskLevel.HIGH, "Pune")

        assert notifier.alerts == []

    def test_dispatch_errors_are_swallowed(self, notifier, caplog):
        notifier.raise_on_alert = True

        with caplog.at_level(logging.ERROR):
            CheckinService.notify_counselor(notifier, "9123400001", "Ramesh", RiskLevel.HIGH, "Pune")

        assert "counselor alert dispatch failed" in caplog.text


class TestQueries:
    def test_get_checkin_is_owner_scoped(self, db, make_farmer, make_checkin):
        owner = make_farmer()
        other = make_farmer()
        checkin = make_checkin(owner)

        assert CheckinService.get_checkin(db, checkin.id, owner.id).id == checkin.id
        with pytest.raises(ApiError) as excinfo:
            CheckinService.get_checkin(db, checkin.id, other.id)
        assert excinfo.value.status_code == 404

    def test_list_filters(self, db, make_farmer, make_checkin):
        pune = make_farmer()
        nashik = make_farmer(district="Nashik")
        make_checkin(pune, RiskLevel.HIGH, 60)
        make_checkin(pune, RiskLevel.LOW, 2)
        make_checkin(nashik, RiskLevel.HIGH, 65)

        _, total = CheckinService.list_checkins(db, risk_level=RiskLevel.HIGH)
        assert total == 2

        rows, total = CheckinService.list_checkins(db, district="Nashik")
        assert total == 1
        assert rows[0].farmer_id == nashik.id

        rows, total = CheckinService.list_checkins(db, farmer_id=pune.id, limit=1)
        assert total == 2
        assert len(rows) == 1


def test_factor_encoding_keeps_order_and_duplicates():
    factors = ["hope_low", "crisis_keywords_detected", "आत्महत्या", "hope_low"]

    assert decode_factors(encode_factors(factors)) == factors
    assert decode_factors(None) == []
