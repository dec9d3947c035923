from datetime import datetime

import pytest
import redis
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clinic.core.security import StoreError
from clinic.models import Appointment, Doctor
from clinic.repositories.prescription_repository import PrescriptionRepository
from clinic.schemas.appointment import AppointmentCreate
from clinic.services.appointment_service import AppointmentService
from tests.conftest import doctor_data, patient_data


def failing_commit(self):
    raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def booking(doctor_id):
    return {"doctor_id": doctor_id, "appointment_time": "2024-01-10T09:00:00"}


class TestRelationalStoreFailures:

    def test_booking_failure_is_reported_and_rolled_back(self, client, doctor_id, patient_token, monkeypatch):
        monkeypatch.setattr(Session, "commit", failing_commit)
        response = client.post(f"/appointments/{patient_token}", json=booking(doctor_id))
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to book appointment"}

        # Not retried, and the slot is still free once the store recovers
        monkeypatch.undo()
        response = client.post(f"/appointments/{patient_token}", json=booking(doctor_id))
        assert response.status_code == 201

    def test_doctor_save_failure(self, client, admin_token, monkeypatch):
        monkeypatch.setattr(Session, "commit", failing_commit)
        response = client.post(f"/doctor/{admin_token}", json=doctor_data)
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save doctor"}

        monkeypatch.undo()
        assert client.get("/doctor").json()["doctors"] == []

    def test_signup_failure(self, client, monkeypatch):
        monkeypatch.setattr(Session, "commit", failing_commit)
        response = client.post("/patient/signup", json=patient_data)
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create patient"}

        monkeypatch.undo()
        assert client.post("/patient/signup", json=patient_data).status_code == 200

    def test_session_usable_after_failure(self, db_session, monkeypatch):
        doctor = Doctor(
            name="Dr. Store", email="store@example.com", password_hash="x", specialty="General"
        )
        db_session.add(doctor)
        db_session.commit()

        service = AppointmentService(db_session)
        data = AppointmentCreate(doctor_id=doctor.id, appointment_time=datetime(2024, 1, 10, 9, 0))
        monkeypatch.setattr(db_session, "commit", lambda: failing_commit(db_session))
        with pytest.raises(StoreError):
            service.book(1, data)

        monkeypatch.undo()
        assert db_session.query(Appointment).count() == 0
        assert db_session.query(Doctor).count() == 1


class TestPrescriptionStoreFailures:

    def test_save_failure_leaves_appointment_scheduled(self, client, doctor_id, doctor_token, patient_token, monkeypatch):
        client.post(f"/appointments/{patient_token}", json=booking(doctor_id))
        appointment_id = client.get(f"/patient/appointments/{patient_token}").json()["appointments"][0]["id"]

        def unreachable(self, prescription):
            raise redis.ConnectionError("Connection refused")

        monkeypatch.setattr(PrescriptionRepository, "insert", unreachable)
        response = client.post(f"/prescription/{doctor_token}", json={
            "patient_name": patient_data["name"],
            "appointment_id": appointment_id,
            "medication": "Amoxicillin",
            "dosage": "500mg",
        })
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save prescription"}

        appointment = client.get(f"/patient/appointments/{patient_token}").json()["appointments"][0]
        assert appointment["status"] == 0

    def test_read_failure(self, client, doctor_token, monkeypatch):
        def unreachable(self, appointment_id):
            raise redis.ConnectionError("Connection refused")

        monkeypatch.setattr(PrescriptionRepository, "find_by_appointment_id", unreachable)
        response = client.get(f"/prescription/1/{doctor_token}")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to retrieve prescription"}
