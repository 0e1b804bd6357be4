"""Tests for OTP sign-in, password accounts, profile and the auth gate."""

from datetime import timedelta

from appointpro.models import User
from appointpro.security_utils import create_access_token, hash_password_bcrypt
from tests.conftest import FakeChannel, auth_headers, make_user

PHONE = "+971501234567"


class TestOtpSignIn:
    def test_send_then_verify_creates_user(self, client, db, whatsapp):
        sent = client.post("/api/auth/send-otp", json={"phone": PHONE})

        assert sent.status_code == 200
        assert sent.json()["channel"] == "whatsapp"
        assert sent.json()["test_otp"] is None
        code = whatsapp.sent[0][1]

        verified = client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": code})

        assert verified.status_code == 200
        body = verified.json()
        assert body["is_new_user"] is True
        assert body["user"]["phone"] == PHONE
        assert body["user"]["registered_via_otp"] is True
        assert db.query(User).filter(User.phone == PHONE).count() == 1

        profile = client.get("/api/user/profile", headers={"Authorization": f"Bearer {body['token']}"})
        assert profile.json()["phone"] == PHONE

    def test_verify_existing_user_signs_in(self, client, user, whatsapp):
        client.post("/api/auth/send-otp", json={"phone": user.phone})

        response = client.post("/api/auth/verify-otp", json={"phone": user.phone, "otp": whatsapp.sent[0][1]})

        assert response.json()["is_new_user"] is False
        assert response.json()["user"]["id"] == user.id

    def test_fallback_reported(self, client, otp_service):
        otp_service.primary = FakeChannel("whatsapp", succeed=False)

        response = client.post("/api/auth/send-otp", json={"phone": PHONE})

        assert response.json()["channel"] == "sms"
        assert response.json()["fallback_used"] is True

    def test_both_channels_failing_is_502(self, client, otp_service):
        otp_service.primary = FakeChannel("whatsapp", succeed=False, error="wa down")
        otp_service.secondary = FakeChannel("sms", succeed=False, error="sms down")

        response = client.post("/api/auth/send-otp", json={"phone": PHONE})

        assert response.status_code == 502
        body = response.json()
        assert body["error_code"] == "OTP_DELIVERY_FAILED"
        assert body["whatsapp_error"] == "wa down"
        assert body["sms_error"] == "sms down"

    def test_wrong_code_reports_remaining_attempts(self, client):
        client.post("/api/auth/send-otp", json={"phone": PHONE})

        response = client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": "not-it"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "OTP_MISMATCH"
        assert response.json()["remaining_attempts"] == 2

    def test_verify_without_send(self, client):
        response = client.post("/api/auth/verify-otp", json={"phone": PHONE, "otp": "123456"})
        assert response.json()["error_code"] == "OTP_NOT_FOUND"

    def test_invalid_phone_is_422(self, client):
        response = client.post("/api/auth/send-otp", json={"phone": "call me"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_check_phone(self, client, user):
        assert client.post("/api/auth/check-phone", json={"phone": user.phone}).json() == {"exists": True}
        assert client.post("/api/auth/check-phone", json={"phone": "+15550001111"}).json() == {"exists": False}


class TestPasswordAccounts:
    def register(self, client, **overrides):
        payload = {"phone": PHONE, "full_name": "Jane Doe", "email": "jane@example.com", "password": "s3cret!"}
        payload.update(overrides)
        return client.post("/api/auth/register", json=payload)

    def test_register_then_login(self, client):
        registered = self.register(client)
        assert registered.status_code == 201
        assert registered.json()["user"]["email"] == "jane@example.com"

        login = client.post("/api/auth/login", json={"phone": PHONE, "password": "s3cret!"})
        assert login.status_code == 200
        assert login.json()["token"]

    def test_duplicate_phone(self, client):
        self.register(client)
        response = self.register(client, email="other@example.com")
        assert response.status_code == 409
        assert response.json()["error_code"] == "PHONE_EXISTS"

    def test_duplicate_email(self, client):
        self.register(client)
        response = self.register(client, phone="+15550001111")
        assert response.json()["error_code"] == "EMAIL_EXISTS"

    def test_wrong_password(self, client):
        self.register(client)
        response = client.post("/api/auth/login", json={"phone": PHONE, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CREDENTIALS"

    def test_otp_only_account_cannot_password_login(self, client, user):
        response = client.post("/api/auth/login", json={"phone": user.phone, "password": "anything"})
        assert response.status_code == 401


class TestProfile:
    def test_partial_update(self, client, user):
        response = client.put("/api/user/profile", json={"full_name": "New Name"}, headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["full_name"] == "New Name"
        assert response.json()["phone"] == user.phone

    def test_empty_update_rejected(self, client, user):
        response = client.put("/api/user/profile", json={}, headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json()["error_code"] == "NO_FIELDS"

    def test_phone_taken(self, client, db, user):
        other = make_user(db, phone="+15550001111")
        response = client.put("/api/user/profile", json={"phone": other.phone}, headers=auth_headers(user))
        assert response.status_code == 409

    def test_change_password_requires_current(self, client, db):
        account = make_user(db, phone="+15550002222", password_hash=hash_password_bcrypt("old-pass"))
        headers = auth_headers(account)

        wrong = client.put(
            "/api/user/change-password",
            json={"current_password": "bad", "new_password": "new-pass"},
            headers=headers,
        )
        assert wrong.status_code == 400
        assert wrong.json()["error_code"] == "INVALID_PASSWORD"

        ok = client.put(
            "/api/user/change-password",
            json={"current_password": "old-pass", "new_password": "new-pass"},
            headers=headers,
        )
        assert ok.status_code == 200
        assert client.post("/api/auth/login", json={"phone": account.phone, "password": "new-pass"}).status_code == 200

    def test_otp_account_sets_first_password(self, client, user):
        response = client.put(
            "/api/user/change-password", json={"new_password": "first-pass"}, headers=auth_headers(user)
        )
        assert response.status_code == 200


class TestAuthGate:
    def test_missing_token(self, client):
        response = client.get("/api/user/profile")
        assert response.status_code == 401
        assert response.json()["error_code"] == "NO_TOKEN"

    def test_garbage_token(self, client):
        response = client.get("/api/user/profile", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    def test_expired_token(self, client, user):
        token = create_access_token(user.id, expires_delta=timedelta(seconds=-5))
        response = client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["error_code"] == "INVALID_TOKEN"

    def test_deleted_user_token(self, client, db, user):
        headers = auth_headers(user)
        db.delete(user)
        db.commit()

        response = client.get("/api/user/profile", headers=headers)

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"


class TestStaffAccounts:
    def staff_payload(self, **overrides):
        payload = {
            "phone": "+971502223333",
            "full_name": "Desk Manager",
            "email": "desk@example.com",
            "password": "staff-pass",
            "role": "manager",
        }
        payload.update(overrides)
        return payload

    def test_super_admin_creates_manager(self, client, db):
        root = make_user(db, phone="+15550004444", role="super_admin")

        response = client.post(
            "/api/superadmin/create-user", json=self.staff_payload(), headers=auth_headers(root)
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "manager"
        assert response.json()["message"] == "Manager user created successfully"
        login = client.post("/api/auth/login", json={"phone": "+971502223333", "password": "staff-pass"})
        assert login.status_code == 200

    def test_admin_is_not_enough(self, client, db):
        admin = make_user(db, phone="+15550003333", role="admin")

        response = client.post(
            "/api/superadmin/create-user", json=self.staff_payload(), headers=auth_headers(admin)
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "SUPER_ADMIN_REQUIRED"

    def test_cannot_mint_super_admins(self, client, db):
        root = make_user(db, phone="+15550004444", role="super_admin")

        response = client.post(
            "/api/superadmin/create-user",
            json=self.staff_payload(role="super_admin"),
            headers=auth_headers(root),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ROLE"
        assert db.query(User).filter(User.phone == "+971502223333").count() == 0

    def test_duplicate_phone(self, client, db, user):
        root = make_user(db, phone="+15550004444", role="super_admin")

        response = client.post(
            "/api/superadmin/create-user",
            json=self.staff_payload(phone=user.phone),
            headers=auth_headers(root),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "PHONE_EXISTS"


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected"}
