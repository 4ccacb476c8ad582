"""
API tests for /api/v1/checkins.
"""

from conftest import admin_headers, farmer_headers
from kisan_sahay.models.alert import Alert
from kisan_sahay.models.checkin import CheckIn
from kisan_sahay.services.alert_service import AlertService

CHECKINS = "/api/v1/checkins"

CALM = {
    "cropCondition": "good",
    "loanPressure": "none",
    "sleepQuality": "good",
    "familySupport": "strong",
    "hopeLevel": 9,
}


def with_(**overrides):
    body = dict(CALM)
    body.update(overrides)
    return body


class TestSubmit:
    def test_calm_checkin(self, client, make_farmer, notifier):
        farmer = make_farmer()

        response = client.post(CHECKINS, json=CALM, headers=farmer_headers(farmer))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["message"] == "Thank you! Your information has been safely recorded."
        assert data["checkIn"]["riskLevel"] == "LOW"
        assert data["checkIn"]["criticalFactors"] == []
        assert data["response"]["showEmergency"] is False
        assert [s["key"] for s in data["response"]["suggestions"]] == ["agriculture"]
        assert notifier.alerts == []

    def test_crisis_checkin_alerts_counselor(self, client, make_farmer, make_admin, notifier, db):
        counselor = make_admin()
        farmer = make_farmer(counselor_id=counselor.id)

        response = client.post(CHECKINS, json=with_(notes="I want to end it"), headers=farmer_headers(farmer))

        data = response.json()["data"]
        assert response.status_code == 201
        assert data["checkIn"]["riskLevel"] == "HIGH"
        assert data["checkIn"]["criticalFactors"] == ["crisis_keywords_detected", "end it"]
        assert data["response"]["showEmergency"] is True
        assert data["response"]["helpline"] == "Helpline for assistance: 1800-233-4000"
        assert notifier.alerts == [(counselor.phone, farmer.name, "HIGH", "Pune")]

        alert = db.query(Alert).one()
        assert alert.checkin_id == data["checkIn"]["id"]
        assert alert.assigned_to_id == counselor.id

    def test_counselor_sms_failure_does_not_fail_request(self, client, make_farmer, make_admin, notifier):
        farmer = make_farmer(counselor_id=make_admin().id)
        notifier.raise_on_alert = True

        response = client.post(CHECKINS, json=with_(notes="poison"), headers=farmer_headers(farmer))

        assert response.status_code == 201

    def test_unassigned_farmer_alerts_without_sms(self, client, make_farmer, notifier, db):
        farmer = make_farmer()

        client.post(CHECKINS, json=with_(notes="poison"), headers=farmer_headers(farmer))

        assert notifier.alerts == []
        assert db.query(Alert).one().assigned_to_id is None

    def test_alert_routing_failure_reports_checkin_id(self, client, make_farmer, monkeypatch, db):
        farmer = make_farmer()

        def boom(*args, **kwargs):
            raise RuntimeError("write failed")

        monkeypatch.setattr(AlertService, "route_alert", staticmethod(boom))

        response = client.post(CHECKINS, json=with_(notes="poison"), headers=farmer_headers(farmer))

        body = response.json()
        assert response.status_code == 500
        assert body["error"]["code"] == "INTERNAL_ERROR"
        checkin = db.get(CheckIn, body["error"]["details"]["checkInId"])
        assert checkin.alert_triggered
        assert db.query(Alert).count() == 0

    def test_validation(self, client, make_farmer):
        headers = farmer_headers(make_farmer())

        for body in (
            with_(hopeLevel=0),
            with_(hopeLevel=11),
            with_(cropCondition="flooded"),
            with_(notes="x" * 1001),
        ):
            response = client.post(CHECKINS, json=body, headers=headers)
            assert response.status_code == 400
            assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_requires_farmer(self, client, make_admin):
        assert client.post(CHECKINS, json=CALM).status_code == 401

        response = client.post(CHECKINS, json=CALM, headers=admin_headers(make_admin()))
        assert response.status_code == 403


class TestGet:
    def test_owner_can_read(self, client, make_farmer, make_checkin):
        farmer = make_farmer()
        checkin = make_checkin(farmer, notes="ok")

        response = client.get(f"{CHECKINS}/{checkin.id}", headers=farmer_headers(farmer))

        data = response.json()["data"]["checkIn"]
        assert data["id"] == checkin.id
        assert data["farmerId"] == farmer.id
        assert data["notes"] == "ok"
        assert data["alertTriggered"] is False

    def test_other_farmer_gets_404(self, client, make_farmer, make_checkin):
        checkin = make_checkin(make_farmer())

        response = client.get(f"{CHECKINS}/{checkin.id}", headers=farmer_headers(make_farmer()))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
