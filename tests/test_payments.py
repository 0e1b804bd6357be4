"""Tests for Ziina payments, status mapping and webhooks."""

import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from appointpro.domain.appointments.schemas import AppointmentCreate
from appointpro.domain.appointments.service import BookingEngine
from appointpro.domain.payments import router as payments_router
from appointpro.domain.payments.router import get_ziina_client
from appointpro.domain.payments.schemas import PaymentCreate, PaymentWebhook
from appointpro.domain.payments.service import (
    PaymentService,
    from_minor_units,
    map_gateway_status,
    to_minor_units,
)
from appointpro.domain.payments.ziina_service import ZiinaClient
from appointpro.main import app
from appointpro.models import Payment
from appointpro.shared.errors import NotFoundOrForbidden, ServiceUnavailable, UpstreamError
from appointpro.webhook_security import compute_hmac_sha256
from tests.conftest import auth_headers, make_user


def make_appointment(db, user, status="pending"):
    return BookingEngine(db).create_appointment(
        AppointmentCreate(
            service="Deep Cleaning",
            appointment_date="2025-03-10",
            appointment_time="10:00",
            location={"city": "Dubai"},
            price="199.99",
            status=status,
        ),
        user,
    )


class FakeZiina:
    """Records requests and answers like the Ziina API."""

    def __init__(self, intent_status="requires_payment_instrument", amount=19999):
        self.requests = []
        self.intent_status = intent_status
        self.amount = amount

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(
                201,
                json={"id": "pi_123", "redirect_url": "https://pay.ziina.test/pi_123", "status": self.intent_status},
            )
        return httpx.Response(
            200,
            json={"id": "pi_123", "status": self.intent_status, "amount": self.amount, "currency_code": "AED"},
        )

    def client(self) -> ZiinaClient:
        return ZiinaClient(
            api_key="sk_test", api_base="https://api.ziina.test/api", test_mode=True,
            transport=httpx.MockTransport(self.handler),
        )


def payment_request(order_id: str) -> PaymentCreate:
    return PaymentCreate(amount="199.99", currency="aed", description="Deep Cleaning", order_id=order_id)


class TestAmounts:
    def test_minor_units_round_half_up(self):
        assert to_minor_units(Decimal("199.99")) == 19999
        assert to_minor_units(Decimal("10.005")) == 1001
        assert to_minor_units(Decimal("5")) == 500

    def test_from_minor_units(self):
        assert from_minor_units(19999) == Decimal("199.99")
        assert from_minor_units(None) is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("completed", "completed"),
        ("failed", "failed"),
        ("canceled", "cancelled"),
        ("CANCELLED", "cancelled"),
        ("requires_payment_instrument", "pending"),
        ("pending", "pending"),
        (None, "pending"),
    ],
)
def test_map_gateway_status(raw, expected):
    assert map_gateway_status(raw) == expected


class TestZiinaClient:
    def test_intent_payload(self):
        fake = FakeZiina()
        intent = asyncio.run(fake.client().create_payment_intent(19999, "AED", "https://s", "https://c"))

        assert intent["id"] == "pi_123"
        request = fake.requests[0]
        assert request.url.path == "/api/payment_intent"
        assert request.headers["authorization"] == "Bearer sk_test"
        assert json.loads(request.content) == {
            "amount": 19999,
            "currency_code": "AED",
            "success_url": "https://s",
            "cancel_url": "https://c",
            "test": True,
        }

    def test_gateway_error(self):
        client = ZiinaClient(
            api_key="sk_test",
            transport=httpx.MockTransport(lambda r: httpx.Response(422, json={"message": "amount too small"})),
        )
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.create_payment_intent(1, "AED", "s", "c"))
        assert exc.value.extra["gateway_status"] == 422
        assert exc.value.message == "amount too small"

    def test_not_configured(self):
        with pytest.raises(ServiceUnavailable) as exc:
            asyncio.run(ZiinaClient(api_key=None).get_payment_intent("pi_1"))
        assert exc.value.error_code == "PAYMENTS_NOT_CONFIGURED"

    @pytest.mark.parametrize("status_code,body", [(500, ["boom"]), (200, "pi_1"), (201, [{"id": "pi_1"}])])
    def test_non_object_body_is_gateway_error(self, status_code, body):
        client = ZiinaClient(
            api_key="sk_test",
            transport=httpx.MockTransport(lambda r: httpx.Response(status_code, json=body)),
        )
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.get_payment_intent("pi_1"))
        assert exc.value.error_code == "PAYMENT_GATEWAY_ERROR"
        assert exc.value.extra["gateway_status"] == status_code


class TestPaymentService:
    def test_create_stores_pending_payment(self, db, user):
        appointment = make_appointment(db, user)
        fake = FakeZiina()

        payment, intent = asyncio.run(
            PaymentService(db, fake.client()).create_payment(payment_request(f"appointment_{appointment.id}"), user)
        )

        assert payment.status == "pending"
        assert payment.payment_id == "pi_123"
        assert payment.currency == "AED"
        assert payment.payment_method == "ziina"
        body = json.loads(fake.requests[0].content)
        assert body["amount"] == 19999
        assert body["message"] == "Deep Cleaning"
        assert f"order_id=appointment_{appointment.id}" in body["success_url"]

    def test_cannot_pay_for_someone_elses_appointment(self, db, user):
        appointment = make_appointment(db, user)
        stranger = make_user(db, phone="+971509999999")
        fake = FakeZiina()

        with pytest.raises(NotFoundOrForbidden):
            asyncio.run(
                PaymentService(db, fake.client()).create_payment(
                    payment_request(f"appointment_{appointment.id}"), stranger
                )
            )
        assert fake.requests == []

    def test_polling_completion_confirms_appointment(self, db, user):
        appointment = make_appointment(db, user)
        fake = FakeZiina()
        service = PaymentService(db, fake.client())
        asyncio.run(service.create_payment(payment_request(f"appointment_{appointment.id}"), user))

        fake.intent_status = "completed"
        result = asyncio.run(service.refresh_status("pi_123", user))

        assert result["status"] == "completed"
        assert result["amount"] == Decimal("199.99")
        db.refresh(appointment)
        assert appointment.status == "confirmed"

    def test_webhook_completed_confirms_from_any_status(self, db, user):
        appointment = make_appointment(db, user, status="cancelled")
        service = PaymentService(db, FakeZiina().client())

        result = service.handle_webhook(
            PaymentWebhook(payment_id="pi_999", status="completed", order_id=f"appointment_{appointment.id}")
        )

        assert result["appointment_id"] == appointment.id
        db.refresh(appointment)
        assert appointment.status == "confirmed"

    def test_webhook_falls_back_to_stored_order(self, db, user):
        appointment = make_appointment(db, user)
        db.add(
            Payment(
                user_id=user.id, order_id=f"appointment_{appointment.id}", payment_id="pi_555",
                amount=Decimal("199.99"), currency="AED", status="pending", payment_method="ziina",
            )
        )
        db.commit()

        PaymentService(db, FakeZiina().client()).handle_webhook(PaymentWebhook(payment_id="pi_555", status="completed"))

        db.refresh(appointment)
        assert appointment.status == "confirmed"
        assert db.query(Payment).filter_by(payment_id="pi_555").one().status == "completed"

    def test_webhook_without_payment_id_confirms_by_order(self, db, user):
        appointment = make_appointment(db, user, status="cancelled")

        result = PaymentService(db, FakeZiina().client()).handle_webhook(
            PaymentWebhook(status="completed", order_id=f"appointment_{appointment.id}")
        )

        assert result["payment_id"] is None
        assert result["appointment_id"] == appointment.id
        db.refresh(appointment)
        assert appointment.status == "confirmed"

    def test_payment_defaults_to_configured_currency(self):
        assert PaymentCreate(amount="10", description="Cleaning", order_id="order_1").currency == "AED"

    def test_failed_webhook_leaves_appointment(self, db, user):
        appointment = make_appointment(db, user)
        PaymentService(db, FakeZiina().client()).handle_webhook(
            PaymentWebhook(payment_id="pi_1", status="failed", order_id=f"appointment_{appointment.id}")
        )
        db.refresh(appointment)
        assert appointment.status == "pending"


class TestPaymentApi:
    def test_create_endpoint(self, client, db, user):
        appointment = make_appointment(db, user)
        fake = FakeZiina()
        app.dependency_overrides[get_ziina_client] = fake.client

        response = client.post(
            "/api/payments/ziina/create",
            json={"amount": 199.99, "currency": "AED", "description": "Cleaning", "order_id": f"appointment_{appointment.id}"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["payment_url"] == "https://pay.ziina.test/pi_123"

    def test_webhook_scenario_confirms_appointment(self, client, db, user):
        appointment = make_appointment(db, user)

        response = client.post(
            "/api/payments/ziina/webhook",
            json={"payment_id": "pi_42", "status": "completed", "order_id": f"appointment_{appointment.id}"},
        )

        assert response.status_code == 200
        db.refresh(appointment)
        assert appointment.status == "confirmed"

    def test_order_only_webhook_confirms_appointment(self, client, db, user):
        appointment = make_appointment(db, user, status="cancelled")

        response = client.post(
            "/api/payments/ziina/webhook",
            json={"status": "completed", "order_id": f"appointment_{appointment.id}"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Webhook processed successfully"
        db.refresh(appointment)
        assert appointment.status == "confirmed"

    def test_webhook_signature_enforced_when_secret_set(self, client, db, user, monkeypatch):
        appointment = make_appointment(db, user)
        monkeypatch.setattr(payments_router, "ZIINA_WEBHOOK_SECRET", "whsec")
        body = json.dumps(
            {"payment_id": "pi_42", "status": "completed", "order_id": f"appointment_{appointment.id}"}
        ).encode()

        rejected = client.post(
            "/api/payments/ziina/webhook", content=body, headers={"X-HMAC-Signature": "deadbeef"}
        )
        assert rejected.status_code == 401
        assert rejected.json()["error_code"] == "INVALID_SIGNATURE"

        accepted = client.post(
            "/api/payments/ziina/webhook",
            content=body,
            headers={"X-HMAC-Signature": f"sha256={compute_hmac_sha256('whsec', body)}"},
        )
        assert accepted.status_code == 200

    def test_malformed_webhook(self, client):
        response = client.post("/api/payments/ziina/webhook", content=b"not json")
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_WEBHOOK"
