import os

# Must be set before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "AdminPass123"
os.environ["RATE_LIMIT_REQUESTS"] = "100"

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from clinic.main import app
from clinic.core.database import Base, build_engine, get_db, get_redis

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    fake = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    app.dependency_overrides[get_redis] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_redis, None)


@pytest.fixture
def client(test_db, redis_client):
    # Startup seeds the admin account from ADMIN_USERNAME/ADMIN_PASSWORD
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


# Test data
doctor_data = {
    "name": "Dr. Gregory House",
    "email": "house@clinic.example.com",
    "password": "Diagnose123",
    "phone": "5550100",
    "specialty": "Diagnostics",
    "available_times": ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"],
}

patient_data = {
    "name": "Jane Patient",
    "email": "jane@example.com",
    "password": "Patient123",
    "phone": "5550200",
    "address": "1 Main Street",
}

other_patient_data = {
    "name": "John Other",
    "email": "john@example.com",
    "password": "Patient456",
    "phone": "5550300",
    "address": "2 Side Street",
}


@pytest.fixture
def admin_token(client):
    response = client.post(
        "/admin/login", json={"username": "admin", "password": "AdminPass123"}
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def doctor_id(client, admin_token):
    response = client.post(f"/doctor/{admin_token}", json=doctor_data)
    assert response.status_code == 200
    doctors = client.get("/doctor").json()["doctors"]
    return doctors[0]["id"]


@pytest.fixture
def doctor_token(client, doctor_id):
    response = client.post(
        "/doctor/login",
        json={"identifier": doctor_data["email"], "password": doctor_data["password"]},
    )
    assert response.status_code == 200
    return response.json()["token"]


def signup_and_login(client, data):
    assert client.post("/patient/signup", json=data).status_code == 200
    response = client.post(
        "/patient/login",
        json={"identifier": data["email"], "password": data["password"]},
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def patient_token(client):
    return signup_and_login(client, patient_data)


@pytest.fixture
def other_patient_token(client):
    return signup_and_login(client, other_patient_data)
