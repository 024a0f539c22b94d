import os

# Configure before the app (and its settings singleton) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FILE"] = ""
os.environ.pop("DEV_SHOW_OTP", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.services import otp as otp_service

# Create in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_otps(monkeypatch):
    """Capture OTP emails instead of talking to SMTP"""
    sent = []

    def fake_send_otp_email(email, otp_code, name=None):
        sent.append({"email": email, "otp": otp_code, "name": name})
        return True

    monkeypatch.setattr(otp_service, "send_otp_email", fake_send_otp_email)
    return sent


@pytest.fixture
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client: TestClient, email: str = "user@example.com", name: str = None) -> dict:
    """Run the OTP flow and leave the session cookie on the client"""
    body = {"email": email}
    if name:
        body["name"] = name
    sent = client.post("/auth/send-otp", json=body).json()
    response = client.post("/auth/verify-otp", json={"otpId": sent["otpId"], "otp": sent["otp"]})
    assert response.status_code == 200, response.json()
    return response.json()["user"]


@pytest.fixture
def auth_client(client):
    login(client)
    return client
