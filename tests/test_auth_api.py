"""
API tests for /api/v1/auth: registration, password and OTP login, token
rotation and the response envelope.
"""

import jwt

from conftest import PASSWORD, admin_headers, farmer_headers
from kisan_sahay.core.config import settings
from kisan_sahay.models.otp_log import NotificationChannel, OtpLog

AUTH = "/api/v1/auth"


def register_payload(**overrides):
    body = {
        "name": "Ramesh Patil",
        "mobile": "9876543210",
        "village": "Shirur",
        "taluka": "Shirur",
        "district": "Pune",
        "farmSize": 3.5,
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
        "preferredLang": "mr",
    }
    body.update(overrides)
    return body


# =============================================================================
# ENVELOPE
# =============================================================================

class TestEnvelope:
    def test_success_envelope_and_request_id(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        body = response.json()
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-123"
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert body["meta"]["requestId"] == "req-123"
        assert "timestamp" in body["meta"]

    def test_validation_error_envelope(self, client):
        response = client.post(f"{AUTH}/register", json=register_payload(mobile="12345"))

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"][0]["field"] == "mobile"
        assert response.headers["X-Request-ID"] == body["meta"]["requestId"]

    def test_translations_endpoint(self, client):
        response = client.get("/api/v1/i18n/en")

        data = response.json()["data"]
        assert data["language"] == "en"
        assert data["translations"]["greeting.hello"] == "Hello"
        assert client.get("/api/v1/i18n/fr").status_code == 404


# =============================================================================
# REGISTRATION & PASSWORD LOGIN
# =============================================================================

class TestRegisterAndLogin:
    def test_register(self, client):
        response = client.post(f"{AUTH}/register", json=register_payload())

        assert response.status_code == 201
        farmer = response.json()["data"]["farmer"]
        assert farmer["mobile"] == "9876543210"
        assert farmer["farmSize"] == 3.5
        assert farmer["status"] == "active"
        assert farmer["isOtpUser"] is False
        assert "passwordHash" not in farmer

    def test_duplicate_mobile(self, client):
        client.post(f"{AUTH}/register", json=register_payload())

        response = client.post(f"{AUTH}/register", json=register_payload())

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_EXISTS"

    def test_password_mismatch(self, client):
        response = client.post(f"{AUTH}/register", json=register_payload(confirmPassword="different"))

        assert response.status_code == 400

    def test_login_returns_token_pair(self, client, make_farmer):
        farmer = make_farmer()

        response = client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": PASSWORD})

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["tokenType"] == "bearer"
        assert data["expiresIn"] == settings.JWT_ACCESS_EXPIRE_MINUTES * 60
        assert data["farmer"]["id"] == farmer.id
        claims = jwt.decode(data["accessToken"], settings.JWT_ACCESS_SECRET, algorithms=[settings.JWT_ALGORITHM])
        assert claims["sub"] == str(farmer.id)
        assert claims["type"] == "farmer"

    def test_wrong_password(self, client, make_farmer):
        farmer = make_farmer()

        response = client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_otp_only_farmer_cannot_use_password(self, client, make_farmer):
        farmer = make_farmer(is_otp_user=True, password_hash=None)

        response = client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": PASSWORD})

        assert response.status_code == 401

    def test_login_is_rate_limited(self, client, make_farmer):
        farmer = make_farmer()
        for _ in range(5):
            client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": "wrong"})

        response = client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": PASSWORD})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(response.headers["Retry-After"]) > 0


# =============================================================================
# OTP LOGIN
# =============================================================================

class TestOtp:
    def test_first_otp_login_creates_farmer(self, client, notifier):
        sent = client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})

        assert sent.status_code == 200
        assert sent.json()["data"]["expiresIn"] == settings.OTP_EXPIRY_MINUTES * 60
        assert notifier.otps[0][0] == "9123456780"
        assert notifier.otps[0][2] == NotificationChannel.SMS

        response = client.post(f"{AUTH}/otp/verify", json={"mobile": "9123456780", "otp": notifier.last_otp})

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["isNewUser"] is True
        assert data["farmer"]["isOtpUser"] is True
        assert data["farmer"]["name"] == "शेतकरी"

    def test_existing_farmer_is_not_new(self, client, notifier, make_farmer):
        farmer = make_farmer()
        client.post(f"{AUTH}/otp/send", json={"mobile": farmer.mobile, "channel": "whatsapp"})

        response = client.post(f"{AUTH}/otp/verify", json={"mobile": farmer.mobile, "otp": notifier.last_otp})

        assert response.json()["data"]["isNewUser"] is False
        assert notifier.otps[0][2] == NotificationChannel.WHATSAPP
        # farmer's own language is used for the code message
        assert notifier.otps[0][3] == "en"

    def test_wrong_code_then_lockout(self, client, notifier, db):
        client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})
        wrong = "000000" if notifier.last_otp != "000000" else "111111"

        codes = [
            client.post(f"{AUTH}/otp/verify", json={"mobile": "9123456780", "otp": wrong}).json()["error"]["code"]
            for _ in range(settings.OTP_MAX_ATTEMPTS)
        ]
        assert codes == ["INVALID_OTP"] * settings.OTP_MAX_ATTEMPTS
        assert db.query(OtpLog).one().attempts == settings.OTP_MAX_ATTEMPTS

        response = client.post(f"{AUTH}/otp/verify", json={"mobile": "9123456780", "otp": notifier.last_otp})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "OTP_MAX_ATTEMPTS"

    def test_no_pending_code(self, client):
        response = client.post(f"{AUTH}/otp/verify", json={"mobile": "9123456780", "otp": "123456"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "OTP_EXPIRED"

    def test_code_is_single_use(self, client, notifier):
        client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})
        body = {"mobile": "9123456780", "otp": notifier.last_otp}

        assert client.post(f"{AUTH}/otp/verify", json=body).status_code == 200
        assert client.post(f"{AUTH}/otp/verify", json=body).json()["error"]["code"] == "OTP_EXPIRED"

    def test_send_is_limited_per_mobile(self, client):
        for _ in range(3):
            assert client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"}).status_code == 200

        response = client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert client.post(f"{AUTH}/otp/send", json={"mobile": "9123456781"}).status_code == 200

    def test_hourly_limit_is_also_checked_in_the_database(self, client, limiter):
        for _ in range(3):
            client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})
        limiter.reset()

        response = client.post(f"{AUTH}/otp/send", json={"mobile": "9123456780"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "OTP_MAX_ATTEMPTS"


# =============================================================================
# TOKENS
# =============================================================================

class TestTokens:
    def _login(self, client, farmer):
        return client.post(f"{AUTH}/login", json={"mobile": farmer.mobile, "password": PASSWORD}).json()["data"]

    def test_refresh_rotates(self, client, make_farmer):
        tokens = self._login(client, make_farmer())

        rotated = client.post(f"{AUTH}/refresh", json={"refreshToken": tokens["refreshToken"]})

        assert rotated.status_code == 200
        new_tokens = rotated.json()["data"]
        assert new_tokens["refreshToken"] != tokens["refreshToken"]

        reused = client.post(f"{AUTH}/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert reused.status_code == 401
        assert reused.json()["error"]["code"] == "TOKEN_INVALID"

    def test_access_token_is_not_a_refresh_token(self, client, make_farmer):
        tokens = self._login(client, make_farmer())

        response = client.post(f"{AUTH}/refresh", json={"refreshToken": tokens["accessToken"]})

        assert response.status_code == 401

    def test_logout_revokes(self, client, make_farmer):
        tokens = self._login(client, make_farmer())

        response = client.post(f"{AUTH}/logout", json={"refreshToken": tokens["refreshToken"]})

        assert response.json()["data"] == {"loggedOut": True, "revoked": True}
        assert client.post(f"{AUTH}/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401

    def test_logout_without_token(self, client):
        response = client.post(f"{AUTH}/logout")

        assert response.status_code == 200
        assert response.json()["data"]["revoked"] is False


class TestMe:
    def test_farmer(self, client, make_farmer):
        farmer = make_farmer()

        data = client.get(f"{AUTH}/me", headers=farmer_headers(farmer)).json()["data"]

        assert data["type"] == "farmer"
        assert data["farmer"]["id"] == farmer.id

    def test_admin(self, client, make_admin):
        admin = make_admin()

        data = client.get(f"{AUTH}/me", headers=admin_headers(admin)).json()["data"]

        assert data["type"] == "admin"
        assert data["admin"]["role"] == "COUNSELOR"

    def test_missing_token(self, client):
        response = client.get(f"{AUTH}/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_garbage_token(self, client):
        response = client.get(f"{AUTH}/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"
