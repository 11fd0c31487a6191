"""
API integration tests.

Exercise the HTTP surface end to end through the TestClient: public
catalog, availability and booking, admin authentication and the admin
patient, appointment, file and overview endpoints.
"""

from datetime import timedelta

from fastapi.testclient import TestClient

from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, LOCATION_ID, MONDAY, SUNDAY, TUESDAY
from tests.helpers import create_jwt_token


def booking_payload(time: str = "10:00", date: str = MONDAY, **overrides):
    payload = {
        "location_id": LOCATION_ID,
        "date": date,
        "time": time,
        "reason": "first-visit",
        "name": "Ana López",
        "phone": "5512345678",
        "email": "ana@example.com",
    }
    payload.update(overrides)
    return payload


class TestPublicCatalog:
    """Test locations and services listings."""

    def test_list_locations(self, client: TestClient):
        response = client.get("/api/locations")

        assert response.status_code == 200
        locations = response.json()["locations"]
        assert locations[0]["id"] == LOCATION_ID
        assert locations[0]["allowed_days"] == [1, 2, 3, 4, 5, 6]
        assert locations[0]["interval_minutes"] == 30

    def test_list_services(self, client: TestClient):
        response = client.get("/api/services")

        assert response.status_code == 200
        services = {s["id"]: s for s in response.json()["services"]}
        assert services["srv-1"]["slot_count"] == 2
        assert services["srv-2"]["slot_count"] == 1


class TestAvailabilityEndpoint:
    """Test GET /api/locations/{id}/slots."""

    def test_open_day_returns_all_slots(self, client: TestClient):
        response = client.get(f"/api/locations/{LOCATION_ID}/slots", params={"date": MONDAY})

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == MONDAY
        assert len(data["slots"]) == 12
        assert data["slots"][0] == "09:00"
        assert data["slots"][-1] == "14:30"

    def test_closed_day_returns_empty(self, client: TestClient):
        response = client.get(f"/api/locations/{LOCATION_ID}/slots", params={"date": SUNDAY})

        assert response.status_code == 200
        assert response.json()["slots"] == []

    def test_unknown_location_is_404(self, client: TestClient):
        response = client.get("/api/locations/nowhere/slots", params={"date": MONDAY})

        assert response.status_code == 404

    def test_bad_date_is_400(self, client: TestClient):
        response = client.get(f"/api/locations/{LOCATION_ID}/slots", params={"date": "mañana"})

        assert response.status_code == 400

    def test_unknown_service_is_400(self, client: TestClient):
        response = client.get(
            f"/api/locations/{LOCATION_ID}/slots", params={"date": MONDAY, "service_id": "srv-x"}
        )

        assert response.status_code == 400

    def test_booking_is_reflected_in_slots(self, client: TestClient):
        client.post("/api/bookings", json=booking_payload("11:00", service_id="srv-1"))

        slots = client.get(f"/api/locations/{LOCATION_ID}/slots", params={"date": MONDAY}).json()["slots"]
        two_slot = client.get(
            f"/api/locations/{LOCATION_ID}/slots", params={"date": MONDAY, "service_id": "srv-1"}
        ).json()["slots"]

        assert "11:00" not in slots
        assert "11:30" not in slots
        assert "12:00" in slots
        assert "10:30" not in two_slot
        assert "14:30" not in two_slot


class TestBookingEndpoint:
    """Test POST /api/bookings."""

    def test_create_booking(self, client: TestClient):
        response = client.post("/api/bookings", json=booking_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["date"] == MONDAY
        assert data["time"] == "10:00"

    def test_empty_service_id_means_no_service(self, client: TestClient):
        response = client.post("/api/bookings", json=booking_payload(service_id=""))

        assert response.status_code == 201

    def test_double_booking_is_409(self, client: TestClient):
        client.post("/api/bookings", json=booking_payload())

        response = client.post(
            "/api/bookings", json=booking_payload(name="Luis", phone="5587654321", email="luis@example.com")
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "El horario seleccionado ya no está disponible"

    def test_closed_day_is_400(self, client: TestClient):
        response = client.post("/api/bookings", json=booking_payload(date=SUNDAY))

        assert response.status_code == 400

    def test_missing_fields_is_422(self, client: TestClient):
        response = client.post("/api/bookings", json={"location_id": LOCATION_ID})

        assert response.status_code == 422


class TestAuthEndpoints:
    """Test admin login, session lookup and logout."""

    def test_login_and_session(self, client: TestClient, admin_account):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        assert response.status_code == 200
        token = response.json()["access_token"]

        session = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert session.status_code == 200
        assert session.json()["email"] == ADMIN_EMAIL

    def test_login_email_is_case_insensitive(self, client: TestClient, admin_account):
        response = client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 200

    def test_wrong_password_is_401(self, client: TestClient, admin_account):
        response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Correo o contraseña incorrectos"

    def test_unknown_account_is_401(self, client: TestClient, admin_account):
        response = client.post("/api/auth/login", json={"email": "otro@example.com", "password": ADMIN_PASSWORD})

        assert response.status_code == 401

    def test_logout_revokes_token(self, client: TestClient, auth_headers):
        response = client.post("/api/auth/logout", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Sesión cerrada"

        assert client.get("/api/auth/session", headers=auth_headers).status_code == 401
        assert client.get("/api/admin/patients", headers=auth_headers).status_code == 401

    def test_logout_without_session(self, client: TestClient):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "No había sesión activa"

    def test_token_without_session_row_is_rejected(self, client: TestClient):
        token = create_jwt_token(ADMIN_EMAIL, "00000000-0000-0000-0000-000000000000")

        response = client.get("/api/admin/patients", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_expired_token_is_rejected(self, client: TestClient):
        token = create_jwt_token(ADMIN_EMAIL, "s", expires_in=timedelta(seconds=-5))

        response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_admin_requires_token(self, client: TestClient):
        assert client.get("/api/admin/patients").status_code == 401
        assert client.get("/api/admin/overview").status_code == 401


class TestAdminPatients:
    """Test the admin patient endpoints."""

    def test_create_list_and_get(self, client: TestClient, auth_headers):
        created = client.post(
            "/api/admin/patients",
            headers=auth_headers,
            json={"name": "Ana López", "phone": "5512345678", "email": "ana@example.com", "notes": "VIP"},
        )
        assert created.status_code == 201
        patient_id = created.json()["id"]

        listing = client.get("/api/admin/patients", headers=auth_headers)
        assert [p["id"] for p in listing.json()["patients"]] == [patient_id]

        detail = client.get(f"/api/admin/patients/{patient_id}", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.json()["patient"]["notes"] == "VIP"
        assert detail.json()["appointments"] == []

    def test_duplicate_patient_is_409(self, client: TestClient, auth_headers):
        body = {"name": "Ana López", "phone": "5512345678", "email": "ana@example.com"}
        client.post("/api/admin/patients", headers=auth_headers, json=body)

        response = client.post("/api/admin/patients", headers=auth_headers, json=body)

        assert response.status_code == 409

    def test_search_reports_last_location(self, client: TestClient, auth_headers):
        client.post("/api/bookings", json=booking_payload())

        response = client.get("/api/admin/patients/search", headers=auth_headers, params={"q": "ana"})

        assert response.status_code == 200
        patients = response.json()["patients"]
        assert len(patients) == 1
        assert patients[0]["last_location_id"] == LOCATION_ID

    def test_patch_requires_a_field(self, client: TestClient, auth_headers):
        created = client.post(
            "/api/admin/patients", headers=auth_headers, json={"name": "Ana López", "phone": "5512345678"}
        ).json()

        response = client.patch(f"/api/admin/patients/{created['id']}", headers=auth_headers, json={})

        assert response.status_code == 422

    def test_patch_notes(self, client: TestClient, auth_headers):
        created = client.post(
            "/api/admin/patients", headers=auth_headers, json={"name": "Ana López", "phone": "5512345678"}
        ).json()

        response = client.patch(
            f"/api/admin/patients/{created['id']}", headers=auth_headers, json={"notes": "Llamar antes"}
        )

        assert response.status_code == 200
        assert response.json()["notes"] == "Llamar antes"

    def test_delete_patient_cascades(self, client: TestClient, auth_headers):
        booking = client.post("/api/bookings", json=booking_payload()).json()

        response = client.delete(f"/api/admin/patients/{booking['patient_id']}", headers=auth_headers)

        assert response.status_code == 200
        assert "1 cita" in response.json()["message"]
        assert client.get("/api/admin/appointments", headers=auth_headers).json()["appointments"] == []


class TestAdminAppointments:
    """Test the admin appointment endpoints."""

    def test_day_view_includes_patient_names_and_blocks(self, client: TestClient, auth_headers):
        client.post("/api/bookings", json=booking_payload("10:00"))
        block = client.post(
            "/api/admin/appointments/block",
            headers=auth_headers,
            json={"location_id": LOCATION_ID, "date": MONDAY, "time": "09:00"},
        )
        assert block.status_code == 201

        response = client.get("/api/admin/appointments/day", headers=auth_headers, params={"date": MONDAY})

        appointments = response.json()["appointments"]
        assert [a["status"] for a in appointments] == ["blocked", "confirmed"]
        assert appointments[1]["patient_name"] == "Ana López"

    def test_status_change_and_illegal_transition(self, client: TestClient, auth_headers):
        appointment_id = client.post("/api/bookings", json=booking_payload()).json()["appointment_id"]

        ok = client.put(
            f"/api/admin/appointments/{appointment_id}/status", headers=auth_headers, json={"status": "waiting_room"}
        )
        illegal = client.put(
            f"/api/admin/appointments/{appointment_id}/status", headers=auth_headers, json={"status": "confirmed"}
        )

        assert ok.status_code == 200
        assert ok.json()["status"] == "waiting_room"
        assert illegal.status_code == 409

    def test_unknown_status_is_422(self, client: TestClient, auth_headers):
        appointment_id = client.post("/api/bookings", json=booking_payload()).json()["appointment_id"]

        response = client.put(
            f"/api/admin/appointments/{appointment_id}/status", headers=auth_headers, json={"status": "archived"}
        )

        assert response.status_code == 422

    def test_patch_reschedules(self, client: TestClient, auth_headers):
        appointment_id = client.post("/api/bookings", json=booking_payload()).json()["appointment_id"]

        response = client.patch(
            f"/api/admin/appointments/{appointment_id}",
            headers=auth_headers,
            json={"date": TUESDAY, "time": "13:00", "notes": "Reprogramada por teléfono"},
        )

        assert response.status_code == 200
        assert response.json()["date"] == TUESDAY
        assert response.json()["time"] == "13:00"
        assert response.json()["notes"] == "Reprogramada por teléfono"

    def test_patch_blocked_slot_is_409(self, client: TestClient, auth_headers):
        block_id = client.post(
            "/api/admin/appointments/block",
            headers=auth_headers,
            json={"location_id": LOCATION_ID, "date": MONDAY, "time": "09:00"},
        ).json()["id"]

        response = client.patch(
            f"/api/admin/appointments/{block_id}", headers=auth_headers, json={"notes": "x"}
        )

        assert response.status_code == 409

    def test_delete_appointment_frees_slot(self, client: TestClient, auth_headers):
        appointment_id = client.post("/api/bookings", json=booking_payload()).json()["appointment_id"]

        response = client.delete(f"/api/admin/appointments/{appointment_id}", headers=auth_headers)

        assert response.status_code == 200
        assert client.get(f"/api/admin/appointments/{appointment_id}", headers=auth_headers).status_code == 404
        slots = client.get(f"/api/locations/{LOCATION_ID}/slots", params={"date": MONDAY}).json()["slots"]
        assert "10:00" in slots


class TestAdminFilesAndOverview:
    """Test attachment upload and the overview endpoint."""

    def test_upload_list_and_delete_file(self, client: TestClient, auth_headers):
        patient_id = client.post("/api/bookings", json=booking_payload()).json()["patient_id"]

        uploaded = client.post(
            f"/api/admin/patients/{patient_id}/files",
            headers=auth_headers,
            files={"file": ("placa.png", b"png-bytes", "image/png")},
            data={"description": "Panorámica"},
        )
        assert uploaded.status_code == 201
        assert uploaded.json()["thumbnail_url"] is not None

        listing = client.get(f"/api/admin/patients/{patient_id}/files", headers=auth_headers)
        assert len(listing.json()["files"]) == 1

        deleted = client.delete(f"/api/admin/files/{uploaded.json()['id']}", headers=auth_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/admin/patients/{patient_id}/files", headers=auth_headers).json()["files"] == []

    def test_upload_rejects_text_files(self, client: TestClient, auth_headers):
        patient_id = client.post("/api/bookings", json=booking_payload()).json()["patient_id"]

        response = client.post(
            f"/api/admin/patients/{patient_id}/files",
            headers=auth_headers,
            files={"file": ("notas.txt", b"hola", "text/plain")},
        )

        assert response.status_code == 400

    def test_overview(self, client: TestClient, auth_headers):
        client.post("/api/bookings", json=booking_payload("09:00"))
        client.post("/api/bookings", json=booking_payload("09:00", date=TUESDAY))

        response = client.get("/api/admin/overview", headers=auth_headers, params={"today": MONDAY})

        assert response.status_code == 200
        data = response.json()
        assert data["today_count"] == 1
        assert data["week_count"] == 2
        assert data["active_patients"] == 1
        assert data["today_appointments"][0]["patient_name"] == "Ana López"
