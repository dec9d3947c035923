import pytest

from clinic.core.config import settings
from clinic.models import Appointment, Patient
from clinic.services.patient_service import PatientService
from tests.conftest import doctor_data, patient_data


class TestAdmin:

    def test_admin_login(self, client):
        """The admin seeded at startup can log in."""
        response = client.post("/admin/login", json={"username": "admin", "password": "AdminPass123"})
        assert response.status_code == 200
        assert "token" in response.json()

    def test_admin_login_wrong_password(self, client):
        response = client.post("/admin/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid admin credentials"}

    def test_admin_login_unknown_user(self, client):
        response = client.post("/admin/login", json={"username": "root", "password": "AdminPass123"})
        assert response.status_code == 401


class TestPatientAccounts:

    def test_signup(self, client):
        response = client.post("/patient/signup", json=patient_data)
        assert response.status_code == 200
        assert response.json() == {"message": "Signup successful"}

    def test_password_is_hashed(self, client, db_session):
        client.post("/patient/signup", json=patient_data)

        stored = db_session.query(Patient).filter(Patient.email == patient_data["email"]).one()
        assert stored.password_hash != patient_data["password"]
        assert stored.password_hash.startswith("$2")

    def test_signup_duplicate_email(self, client):
        client.post("/patient/signup", json=patient_data)

        response = client.post("/patient/signup", json={**patient_data, "phone": "5559999"})
        assert response.status_code == 409
        assert "already exist" in response.json()["error"]

    def test_signup_duplicate_phone(self, client):
        client.post("/patient/signup", json=patient_data)

        response = client.post("/patient/signup", json={**patient_data, "email": "new@example.com"})
        assert response.status_code == 409

    def test_signup_race_is_a_conflict(self, client, monkeypatch):
        """A duplicate that slips past the pre-check is caught by the unique index."""
        client.post("/patient/signup", json=patient_data)
        monkeypatch.setattr(PatientService, "is_unique", lambda self, email, phone: True)

        response = client.post("/patient/signup", json=patient_data)
        assert response.status_code == 409
        assert response.json() == {"error": "Patient with email id or phone no already exist"}

    def test_signup_invalid_password(self, client):
        response = client.post("/patient/signup", json={**patient_data, "password": "weak"})
        assert response.status_code == 422

    def test_login_wrong_password(self, client):
        client.post("/patient/signup", json=patient_data)

        response = client.post(
            "/patient/login", json={"identifier": patient_data["email"], "password": "wrongpassword"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid patient credentials"}

    def test_details(self, client, patient_token):
        response = client.get(f"/patient/details/{patient_token}")
        assert response.status_code == 200

        patient = response.json()["patient"]
        assert patient["email"] == patient_data["email"]
        assert patient["name"] == patient_data["name"]
        assert "password" not in patient
        assert "password_hash" not in patient

    def test_details_invalid_token(self, client):
        response = client.get("/patient/details/invalid_token")
        assert response.status_code == 401

    def test_patient_token_does_not_work_as_doctor(self, client, patient_token, doctor_id):
        response = client.get(f"/doctor/availability/doctor/{doctor_id}/2024-01-10/{patient_token}")
        assert response.status_code == 401


class TestDoctorManagement:

    def test_create_doctor(self, client, admin_token):
        response = client.post(f"/doctor/{admin_token}", json=doctor_data)
        assert response.status_code == 200
        assert response.json() == {"message": "Doctor added to db"}

        doctors = client.get("/doctor").json()["doctors"]
        assert len(doctors) == 1
        assert doctors[0]["email"] == doctor_data["email"]
        assert "password_hash" not in doctors[0]

    def test_create_duplicate_doctor(self, client, admin_token, doctor_id):
        response = client.post(f"/doctor/{admin_token}", json=doctor_data)
        assert response.status_code == 409
        assert response.json() == {"error": "Doctor already exists"}

    def test_create_requires_admin(self, client, patient_token):
        response = client.post(f"/doctor/{patient_token}", json=doctor_data)
        assert response.status_code == 401

    def test_create_rejects_bad_times(self, client, admin_token):
        response = client.post(
            f"/doctor/{admin_token}", json={**doctor_data, "available_times": ["9am"]}
        )
        assert response.status_code == 422
        assert list(response.json()) == ["error"]
        assert response.json()["error"].startswith("available_times:")

    def test_update_doctor(self, client, admin_token, doctor_id):
        response = client.put(
            f"/doctor/{admin_token}", json={"id": doctor_id, "specialty": "Nephrology"}
        )
        assert response.status_code == 200

        doctor = client.get("/doctor").json()["doctors"][0]
        assert doctor["specialty"] == "Nephrology"
        assert doctor["name"] == doctor_data["name"]

    def test_update_password(self, client, admin_token, doctor_id):
        client.put(f"/doctor/{admin_token}", json={"id": doctor_id, "password": "Changed123"})

        response = client.post(
            "/doctor/login", json={"identifier": doctor_data["email"], "password": "Changed123"}
        )
        assert response.status_code == 200

    def test_update_missing_doctor(self, client, admin_token):
        response = client.put(f"/doctor/{admin_token}", json={"id": 404, "name": "Nobody Here"})
        assert response.status_code == 404
        assert response.json() == {"error": "Doctor not found"}

    def test_delete_doctor_cascades(self, client, admin_token, doctor_id, patient_token, db_session):
        client.post(
            f"/appointments/{patient_token}",
            json={"doctor_id": doctor_id, "appointment_time": "2024-01-10T09:00:00"}
        )
        assert db_session.query(Appointment).count() == 1

        response = client.delete(f"/doctor/{doctor_id}/{admin_token}")
        assert response.status_code == 200
        assert client.get("/doctor").json()["doctors"] == []
        assert db_session.query(Appointment).count() == 0

    def test_delete_missing_doctor(self, client, admin_token):
        response = client.delete(f"/doctor/31337/{admin_token}")
        assert response.status_code == 404

    def test_deleted_doctor_token_stops_working(self, client, admin_token, doctor_id, doctor_token):
        client.delete(f"/doctor/{doctor_id}/{admin_token}")

        response = client.get(f"/appointments/2024-01-10/null/{doctor_token}")
        assert response.status_code == 401

    def test_doctor_login_wrong_password(self, client, doctor_id):
        response = client.post(
            "/doctor/login", json={"identifier": doctor_data["email"], "password": "bad"}
        )
        assert response.status_code == 401


class TestDoctorFilter:

    @pytest.fixture
    def doctors(self, client, admin_token):
        morning = {**doctor_data}
        evening = {
            **doctor_data,
            "name": "Dr. James Wilson",
            "email": "wilson@clinic.example.com",
            "specialty": "Oncology",
            "available_times": ["13:00", "16:00"],
        }
        early = {
            **doctor_data,
            "name": "Dr. Lisa Cuddy",
            "email": "cuddy@clinic.example.com",
            "specialty": "Endocrinology",
            "available_times": ["09:00"],
        }
        for data in (morning, evening, early):
            assert client.post(f"/doctor/{admin_token}", json=data).status_code == 200

    def names(self, client, path):
        response = client.get(f"/doctor/filter/{path}")
        assert response.status_code == 200
        return sorted(d["name"] for d in response.json()["doctors"])

    def test_no_filters(self, client, doctors):
        assert len(self.names(client, "null/null/null")) == 3

    def test_by_name(self, client, doctors):
        assert self.names(client, "wilson/null/null") == ["Dr. James Wilson"]

    def test_by_specialty_ignores_case(self, client, doctors):
        assert self.names(client, "null/null/ONCOLOGY") == ["Dr. James Wilson"]

    def test_by_time(self, client, doctors):
        assert self.names(client, "null/AM/null") == ["Dr. Gregory House", "Dr. Lisa Cuddy"]
        assert self.names(client, "null/pm/null") == ["Dr. Gregory House", "Dr. James Wilson"]

    def test_name_and_time(self, client, doctors):
        assert self.names(client, "cuddy/PM/null") == []
        assert self.names(client, "cuddy/AM/null") == ["Dr. Lisa Cuddy"]

    def test_all_three(self, client, doctors):
        assert self.names(client, "house/PM/diagnostics") == ["Dr. Gregory House"]


class TestDashboards:

    def test_admin_dashboard(self, client, admin_token):
        response = client.get(f"/adminDashboard/{admin_token}")
        assert response.status_code == 200
        assert response.json() == {"dashboard": "admin/adminDashboard", "role": "ADMIN"}

    def test_doctor_dashboard(self, client, doctor_token):
        response = client.get(f"/doctorDashboard/{doctor_token}")
        assert response.status_code == 200
        assert response.json()["role"] == "DOCTOR"

    def test_wrong_role_redirects(self, client, doctor_token):
        response = client.get(f"/adminDashboard/{doctor_token}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == settings.FRONTEND_URL


class TestService:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unknown_route(self, client):
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_rate_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_REQUESTS", 2)
        credentials = {"username": "admin", "password": "wrong"}

        assert client.post("/admin/login", json=credentials).status_code == 401
        assert client.post("/admin/login", json=credentials).status_code == 401
        response = client.post("/admin/login", json=credentials)
        assert response.status_code == 429
        assert "Too many requests" in response.json()["error"]

    def test_bad_path_segment_uses_error_body(self, client, patient_token, doctor_id):
        response = client.get(f"/doctor/availability/patient/{doctor_id}/not-a-date/{patient_token}")
        assert response.status_code == 422
        assert list(response.json()) == ["error"]
        assert response.json()["error"].startswith("date:")

    def test_malformed_body_uses_error_body(self, client):
        response = client.post(
            "/patient/login", content="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422
        assert "error" in response.json()
        assert "detail" not in response.json()
