"""API tests for the public booking and admin appointment endpoints."""

from datetime import date, timedelta

from autoshop.models import Appointment


def booking_payload(booking_date: date, service_ids: list[int], **overrides) -> dict:
    payload = {
        "customer_name": "Jane Driver",
        "customer_email": "jane@example.com",
        "customer_phone": "902-555-0142",
        "car_make": "Toyota",
        "car_model": "Corolla",
        "car_year": 2018,
        "service_ids": service_ids,
        "appointment_date": booking_date.isoformat(),
        "appointment_time": "09:00",
        "notes": "",
    }
    payload.update(overrides)
    return payload


class TestPublicAvailability:
    """Tests for GET /appointments/availability."""

    def test_full_grid_without_services(self, client, booking_date, add_appointment) -> None:
        add_appointment("10:00")
        response = client.get("/appointments/availability", params={"date": booking_date.isoformat()})

        assert response.status_code == 200
        body = response.json()
        assert body["duration_minutes"] == 0
        assert len(body["available_times"]) == 17

    def test_filters_by_selected_services(self, client, booking_date, add_appointment, catalog) -> None:
        add_appointment("10:00", service_keys=("tires",))
        response = client.get(
            "/appointments/availability",
            params={"date": booking_date.isoformat(), "service_ids": [catalog["oil"].id]},
        )

        body = response.json()
        assert body["duration_minutes"] == 30
        assert "09:30" in body["available_times"]
        assert "10:00" not in body["available_times"]
        assert "10:30" not in body["available_times"]
        assert "11:00" in body["available_times"]

    def test_unknown_service_ids_rejected(self, client, booking_date, catalog) -> None:
        response = client.get(
            "/appointments/availability",
            params={"date": booking_date.isoformat(), "service_ids": [12345]},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_lists_active_services(self, client, catalog) -> None:
        response = client.get("/services")
        names = [service["name"] for service in response.json()]
        assert names == ["Brake Inspection", "Oil Change", "Tire Rotation"]


class TestPublicBooking:
    """Tests for POST /appointments."""

    def test_book_success(self, client, booking_date, catalog, notifier, db_session) -> None:
        response = client.post(
            "/appointments", json=booking_payload(booking_date, [catalog["oil"].id, catalog["brakes"].id])
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert len(body["confirmation_number"]) == 8
        assert body["service_ids"] == [catalog["oil"].id, catalog["brakes"].id]
        assert body["notes"] is None
        assert notifier.actions == ["booking"]
        assert db_session.query(Appointment).count() == 1

    def test_booking_stands_when_notification_fails(
        self, client, booking_date, catalog, notifier, db_session
    ) -> None:
        notifier.fail_with = ConnectionError("redis down")

        response = client.post("/appointments", json=booking_payload(booking_date, [catalog["oil"].id]))

        assert response.status_code == 201
        assert db_session.query(Appointment).count() == 1

    def test_conflict_returns_409(self, client, booking_date, catalog, add_appointment) -> None:
        add_appointment("09:00")
        response = client.post(
            "/appointments",
            json=booking_payload(booking_date, [catalog["oil"].id], appointment_time="09:00"),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "slot_unavailable"
        assert "conflicts" in response.json()["detail"]

    def test_first_violated_rule_is_reported(self, client, booking_date, catalog, db_session) -> None:
        response = client.post(
            "/appointments",
            json=booking_payload(
                booking_date, [catalog["oil"].id], customer_name="  ", car_year=1800
            ),
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Name is required"
        assert db_session.query(Appointment).count() == 0

    def test_empty_service_selection_rejected(self, client, booking_date) -> None:
        response = client.post("/appointments", json=booking_payload(booking_date, []))
        assert response.status_code == 422
        assert response.json()["detail"] == "Please select at least one service"

    def test_past_date_rejected(self, client, catalog) -> None:
        yesterday = date.today() - timedelta(days=1)
        response = client.post("/appointments", json=booking_payload(yesterday, [catalog["oil"].id]))
        assert response.status_code == 422
        assert "past" in response.json()["detail"]

    def test_unknown_service_rejected(self, client, booking_date) -> None:
        response = client.post("/appointments", json=booking_payload(booking_date, [12345]))
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_lookup_and_cancel(self, client, booking_date, catalog, notifier) -> None:
        booked = client.post("/appointments", json=booking_payload(booking_date, [catalog["oil"].id]))
        code = booked.json()["confirmation_number"]

        found = client.post(
            "/appointments/lookup", json={"confirmation_number": code.lower(), "phone": "902-555-0142"}
        )
        assert found.status_code == 200
        assert found.json()["id"] == booked.json()["id"]

        cancelled = client.post(
            "/appointments/cancel", json={"confirmation_number": code, "email": "JANE@example.com"}
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert notifier.actions == ["booking", "cancel"]

        again = client.post("/appointments/lookup", json={"confirmation_number": code, "phone": "902-555-0142"})
        assert again.status_code == 404

    def test_lookup_requires_contact(self, client) -> None:
        response = client.post("/appointments/lookup", json={"confirmation_number": "ABCD2345"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Please provide confirmation number and either email or phone"


class TestAdminAppointments:
    """Tests for /admin/appointments."""

    def test_requires_authentication(self, client) -> None:
        response = client.get("/admin/appointments")
        assert response.status_code == 401

    def test_rejects_garbage_token(self, client) -> None:
        response = client.get("/admin/appointments", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_list_filtered_by_date(self, client, auth_headers, add_appointment, booking_date) -> None:
        add_appointment("13:00")
        add_appointment("09:00")
        add_appointment("09:00", appointment_date=booking_date + timedelta(days=1))

        response = client.get(
            "/admin/appointments", params={"date": booking_date.isoformat()}, headers=auth_headers
        )

        assert response.status_code == 200
        assert [a["appointment_time"] for a in response.json()] == ["09:00", "13:00"]

    def test_reschedule_availability_excludes_self(
        self, client, auth_headers, add_appointment, booking_date
    ) -> None:
        appointment = add_appointment("10:00", service_keys=("tires",))
        response = client.get(
            f"/admin/appointments/{appointment.id}/availability",
            params={"date": booking_date.isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert "10:00" in response.json()["available_times"]

    def test_reschedule_endpoint(self, client, auth_headers, add_appointment, booking_date, notifier) -> None:
        appointment = add_appointment("10:00")
        response = client.patch(
            f"/admin/appointments/{appointment.id}/reschedule",
            json={"appointment_date": booking_date.isoformat(), "appointment_time": "15:30"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["appointment_time"] == "15:30"
        assert notifier.actions == ["update"]

    def test_reschedule_terminal_returns_409(
        self, client, auth_headers, add_appointment, booking_date
    ) -> None:
        appointment = add_appointment("10:00", status="complete")
        response = client.patch(
            f"/admin/appointments/{appointment.id}/reschedule",
            json={"appointment_date": booking_date.isoformat(), "appointment_time": "15:30"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_status_transition"

    def test_status_update(self, client, auth_headers, add_appointment, notifier) -> None:
        appointment = add_appointment("10:00")
        response = client.patch(
            f"/admin/appointments/{appointment.id}/status",
            json={"status": "in_progress"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        assert notifier.actions == ["in_progress"]

    def test_unknown_status_value(self, client, auth_headers, add_appointment) -> None:
        appointment = add_appointment("10:00")
        response = client.patch(
            f"/admin/appointments/{appointment.id}/status",
            json={"status": "done"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_missing_appointment_returns_404(self, client, auth_headers) -> None:
        response = client.get("/admin/appointments/999", headers=auth_headers)
        assert response.status_code == 404

    def test_staff_create_uses_same_checks(
        self, client, auth_headers, add_appointment, booking_date, catalog
    ) -> None:
        add_appointment("11:00", service_keys=("tires",))
        response = client.post(
            "/admin/appointments",
            json=booking_payload(booking_date, [catalog["oil"].id], appointment_time="11:30"),
            headers=auth_headers,
        )
        assert response.status_code == 409


class TestAdminServices:
    """Tests for /admin/services."""

    def test_create_and_deactivate(self, client, auth_headers) -> None:
        created = client.post(
            "/admin/services",
            json={"name": "Wheel Alignment", "duration_minutes": 90, "price_range": "$90"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        service_id = created.json()["id"]

        updated = client.patch(
            f"/admin/services/{service_id}", json={"is_active": False}, headers=auth_headers
        )
        assert updated.status_code == 200
        assert updated.json()["is_active"] is False

        public = client.get("/services").json()
        assert service_id not in [service["id"] for service in public]

    def test_duration_must_be_positive(self, client, auth_headers) -> None:
        response = client.post(
            "/admin/services", json={"name": "Nothing", "duration_minutes": 0}, headers=auth_headers
        )
        assert response.status_code == 422
        assert "positive" in response.json()["detail"]

    def test_requires_authentication(self, client) -> None:
        response = client.post("/admin/services", json={"name": "X", "duration_minutes": 30})
        assert response.status_code == 401
