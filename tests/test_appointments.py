"""Tests for the booking engine and appointment endpoints."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from appointpro.domain.appointments.schemas import AppointmentCreate, AppointmentUpdate
from appointpro.domain.appointments.service import (
    BookingEngine,
    SlotReservationPolicy,
    check_transition,
    parse_order_id,
)
from appointpro.shared.errors import ConflictError, NotFoundOrForbidden, ValidationFailed
from tests.conftest import auth_headers, make_user

LOCATION = {"street": "12 Marina Walk", "city": "Dubai"}


def booking(**overrides) -> AppointmentCreate:
    data = {
        "service": "Deep Cleaning",
        "appointment_date": "2025-03-10",
        "appointment_time": "2:00 PM - 2:30 PM",
        "location": LOCATION,
        "price": "250.00",
    }
    data.update(overrides)
    return AppointmentCreate(**data)


class TestCreateAppointment:
    def test_defaults_applied(self, db, user):
        appointment = BookingEngine(db).create_appointment(booking(), user)

        assert appointment.status == "pending"
        assert appointment.quantity == 1
        assert appointment.extra_price == Decimal("0.00")
        assert appointment.cod_fee == Decimal("0.00")
        assert appointment.appointment_time == "14:00:00"
        assert appointment.user_id == user.id

    def test_date_round_trip(self, db, user):
        engine = BookingEngine(db)
        created = engine.create_appointment(booking(appointment_date="2025-03-10"), user)

        db.expire_all()
        assert engine.get_for_owner(created.id, user).appointment_date == date(2025, 3, 10)

    def test_missing_fields_listed(self, db, user):
        with pytest.raises(ValidationFailed) as exc:
            BookingEngine(db).create_appointment(booking(service="  ", price=None), user)

        assert exc.value.error_code == "MISSING_REQUIRED_FIELD"
        assert exc.value.extra["missing_fields"] == ["service", "price"]

    def test_unreadable_time(self, db, user):
        with pytest.raises(ValidationFailed) as exc:
            BookingEngine(db).create_appointment(booking(appointment_time="whenever"), user)
        assert exc.value.error_code == "INVALID_TIME_FORMAT"

    def test_unreadable_date(self, db, user):
        with pytest.raises(ValidationFailed) as exc:
            BookingEngine(db).create_appointment(booking(appointment_date="tomorrow-ish"), user)
        assert exc.value.error_code == "INVALID_DATE_FORMAT"

    def test_negative_price(self, db, user):
        with pytest.raises(ValidationFailed) as exc:
            BookingEngine(db).create_appointment(booking(price="-1"), user)
        assert exc.value.error_code == "INVALID_PRICE"

    def test_invalid_initial_status(self, db, user):
        with pytest.raises(ValidationFailed) as exc:
            BookingEngine(db).create_appointment(booking(status="booked"), user)
        assert exc.value.error_code == "INVALID_STATUS"

    def test_reservation_policy_can_refuse(self, db, user):
        class FullyBooked(SlotReservationPolicy):
            def reserve(self, db, booking):
                raise ConflictError("Slot is full", error_code="SLOT_FULL")

        with pytest.raises(ConflictError):
            BookingEngine(db, reservation=FullyBooked()).create_appointment(booking(), user)
        assert BookingEngine(db).list_for_user(user) == []

    def test_same_slot_booked_twice_by_default(self, db, user):
        engine = BookingEngine(db)
        engine.create_appointment(booking(), user)
        engine.create_appointment(booking(), user)
        assert len(engine.list_for_user(user)) == 2


class TestOwnership:
    def test_other_users_appointment_hidden(self, db, user):
        stranger = make_user(db, phone="+971509999999")
        appointment = BookingEngine(db).create_appointment(booking(), user)

        with pytest.raises(NotFoundOrForbidden):
            BookingEngine(db).get_for_owner(appointment.id, stranger)

    def test_update_by_owner_only(self, db, user):
        stranger = make_user(db, phone="+971509999999")
        appointment = BookingEngine(db).create_appointment(booking(), user)

        with pytest.raises(NotFoundOrForbidden):
            BookingEngine(db).update_appointment(appointment.id, stranger, AppointmentUpdate(status="cancelled"))

    def test_reschedule_normalizes(self, db, user):
        engine = BookingEngine(db)
        appointment = engine.create_appointment(booking(), user)

        updated = engine.update_appointment(
            appointment.id, user, AppointmentUpdate(appointment_date="2025-04-01", appointment_time="9:00 AM - 9:30 AM")
        )

        assert updated.appointment_date == date(2025, 4, 1)
        assert updated.appointment_time == "09:00:00"
        assert updated.service == "Deep Cleaning"


class TestStatus:
    def test_permissive_by_default(self, db, user):
        engine = BookingEngine(db, strict_transitions=False)
        appointment = engine.create_appointment(booking(status="completed"), user)
        assert engine.set_status(appointment.id, "pending").status == "pending"

    def test_invalid_status_value(self, db, user):
        engine = BookingEngine(db)
        appointment = engine.create_appointment(booking(), user)
        with pytest.raises(ValidationFailed) as exc:
            engine.set_status(appointment.id, "done")
        assert exc.value.error_code == "INVALID_STATUS"

    def test_strict_table_rejects_backwards_edge(self):
        with pytest.raises(ConflictError) as exc:
            check_transition("completed", "pending", strict=True)
        assert exc.value.error_code == "INVALID_STATUS_TRANSITION"

    def test_strict_table_allows_forward_and_same(self):
        check_transition("pending", "confirmed", strict=True)
        check_transition("confirmed", "confirmed", strict=True)

    def test_strict_engine_owner_cancel(self, db, user):
        engine = BookingEngine(db, strict_transitions=True)
        appointment = engine.create_appointment(booking(), user)
        updated = engine.update_appointment(appointment.id, user, AppointmentUpdate(status="cancelled"))
        assert updated.status == "cancelled"

    def test_missing_appointment(self, db):
        with pytest.raises(NotFoundOrForbidden) as exc:
            BookingEngine(db).set_status(42, "confirmed")
        assert exc.value.error_code == "APPOINTMENT_NOT_FOUND"


class TestConfirmFromOrder:
    def test_parse_order_id(self):
        assert parse_order_id("appointment_42") == 42
        assert parse_order_id("subscription_42") is None
        assert parse_order_id("appointment_") is None
        assert parse_order_id(None) is None

    @pytest.mark.parametrize("prior", ["pending", "cancelled", "completed"])
    def test_forces_confirmed_from_any_status(self, db, user, prior):
        engine = BookingEngine(db, strict_transitions=True)
        appointment = engine.create_appointment(booking(status=prior), user)

        confirmed = engine.confirm_from_order(f"appointment_{appointment.id}")

        assert confirmed.status == "confirmed"

    def test_unknown_appointment_ignored(self, db):
        assert BookingEngine(db).confirm_from_order("appointment_999") is None


class TestUpcomingAndPast:
    def test_split_by_now(self, db, user):
        engine = BookingEngine(db)
        past = engine.create_appointment(booking(appointment_date="2025-03-09"), user)
        later_today = engine.create_appointment(booking(appointment_date="2025-03-10", appointment_time="15:00"), user)
        future = engine.create_appointment(booking(appointment_date="2025-03-11"), user)
        engine.create_appointment(booking(appointment_date="2025-03-12", status="cancelled"), user)
        now = datetime(2025, 3, 10, 12, 0)

        upcoming_ids = [a.id for a in engine.list_upcoming(user, now=now)]
        past_ids = [a.id for a in engine.list_past(user, now=now)]

        assert upcoming_ids == [later_today.id, future.id]
        assert past_ids == [past.id]


class TestAppointmentApi:
    def test_create_and_fetch(self, client, user):
        headers = auth_headers(user)
        payload = {
            "service": "Deep Cleaning",
            "appointment_date": "2025-03-10",
            "appointment_time": "12:15 PM - 12:45 PM",
            "location": LOCATION,
            "price": 250,
            "quantity": 2,
        }

        response = client.post("/api/user/appointments", json=payload, headers=headers)

        assert response.status_code == 201
        body = response.json()
        appointment_id = body["appointment_id"]
        assert body["appointment"]["appointment_time"] == "12:15:00"
        assert body["appointment"]["status"] == "pending"
        assert body["appointment"]["quantity"] == 2

        fetched = client.get(f"/api/user/appointments/{appointment_id}", headers=headers)
        assert fetched.json()["appointment_date"] == "2025-03-10"

    def test_missing_fields_is_400(self, client, user):
        response = client.post("/api/user/appointments", json={"service": "x"}, headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_REQUIRED_FIELD"

    def test_requires_token(self, client):
        response = client.get("/api/user/appointments")
        assert response.status_code == 401
        assert response.json()["error_code"] == "NO_TOKEN"

    def test_other_users_appointment_is_404(self, client, db, user):
        appointment = BookingEngine(db).create_appointment(booking(), user)
        stranger = make_user(db, phone="+971509999999")

        response = client.get(f"/api/user/appointments/{appointment.id}", headers=auth_headers(stranger))

        assert response.status_code == 404

    def test_admin_list_includes_customer(self, client, db, user, admin):
        BookingEngine(db).create_appointment(booking(), user)

        response = client.get("/api/admin/appointments", headers=auth_headers(admin))

        (row,) = response.json()
        assert row["customer_name"] == "Test User"
        assert row["customer_phone"] == user.phone

    def test_admin_status_update(self, client, db, user, admin):
        appointment = BookingEngine(db).create_appointment(booking(), user)

        response = client.put(
            f"/api/admin/appointments/{appointment.id}/status",
            json={"status": "in-progress"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"
