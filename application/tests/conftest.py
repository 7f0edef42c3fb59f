import os
import re
import tempfile

# Settings are read at import time; configure the environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_READ_URL"] = "sqlite://"
os.environ["DEBUG"] = "true"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["OTP_TOKEN_SECRET"] = "test-otp-secret"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["OTP_CACHE_BACKEND"] = "memory"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_VERIFY_SERVICE_SID"] = ""
os.environ["TWILIO_FROM_NUMBER"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["DEFAULT_WA_LINK"] = "https://wa.link/default"
os.environ["FORCE_WA_LINK_URL"] = "https://wa.link/special"
os.environ["FORCE_WA_LINK_FOR_USER_IDS"] = "VIP1"
os.environ["SENTRY_ENABLED"] = "false"
os.environ["FIREHOSE_ENABLED"] = "false"
os.environ["AUDIT_LOGGING_ENABLED"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="support-directory-logs-")

import pytest
from fastapi.testclient import TestClient

from support_directory.connections.database import Base, engine
from support_directory.core.constants import ROOT_USER_ID, Roles
from support_directory.integrations.twilio_otp import OTPProviderError
from support_directory.main import app
from support_directory.models.accounts import Account  # noqa: F401
from support_directory.models.branches import Branch  # noqa: F401
from support_directory.models.visit_logs import VisitLog  # noqa: F401
from support_directory.repository.accounts import AccountRepository
from support_directory.services.otp_challenge_store import InMemoryChallengeStore
from support_directory.services.otp_service import build_otp_verifier
from support_directory.utils.passwords import hash_password

ROOT_EMAIL = "root@example.com"
ROOT_PASSWORD = "root-password-1"


class FakeMessagingProvider:
    """Plain messaging only, so the self-managed strategy is used."""

    verify_configured = False

    def __init__(self, messaging_configured=True):
        self.messaging_configured = messaging_configured
        self.messages = []
        self.fail_with = None

    def send_message(self, to, body, channel="sms"):
        if self.fail_with is not None:
            raise self.fail_with
        self.messages.append({"to": to, "body": body, "channel": channel})
        return {"sid": f"SM{len(self.messages)}"}

    def last_code(self, phone):
        for message in reversed(self.messages):
            if message["to"] == phone:
                return re.search(r"\b(\d{4,10})\b", message["body"]).group(1)
        return None


class FakeVerifyProvider:
    """Stands in for the managed verification service."""

    verify_configured = True
    messaging_configured = True

    def __init__(self):
        self.codes = {}
        self.challenges = []

    def create_challenge(self, phone, channel):
        self.challenges.append((phone, channel))
        self.codes[phone] = "123456"
        return {"sid": "VE1", "status": "pending"}

    def check_challenge(self, phone, code):
        if phone not in self.codes:
            raise OTPProviderError("The requested resource was not found", 404)
        if self.codes[phone] != code:
            return {"status": "pending"}
        del self.codes[phone]
        return {"status": "approved"}


class FakeEmailSender:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    def send_password_reset_email(self, address, token, display_name="Admin"):
        self.sent.append({"address": address, "token": token, "display_name": display_name})
        return self.succeed


@pytest.fixture(autouse=True)
def database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def rate_limits():
    app.state.rate_limiter.reset()
    yield
    app.state.rate_limiter.reset()


@pytest.fixture
def otp_provider(monkeypatch):
    provider = FakeMessagingProvider()
    verifier = build_otp_verifier(provider, app.state.token_issuer, AccountRepository(), store=InMemoryChallengeStore())
    monkeypatch.setattr(app.state, "otp_verifier", verifier, raising=False)
    return provider


@pytest.fixture
def email_sender(monkeypatch):
    sender = FakeEmailSender()
    monkeypatch.setattr(app.state.auth_service, "email_sender", sender)
    return sender


@pytest.fixture
def client(otp_provider, email_sender):
    return TestClient(app)


@pytest.fixture
def root_account():
    return AccountRepository().create(
        user_id=ROOT_USER_ID,
        username="root",
        email=ROOT_EMAIL,
        name="Root",
        role=Roles.ROOT,
        password_hash=hash_password(ROOT_PASSWORD),
    )


def login(client, identifier, password):
    response = client.post("/auth/login", json={"identifier": identifier, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["accessToken"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def root_headers(client, root_account):
    return bearer(login(client, ROOT_EMAIL, ROOT_PASSWORD))


@pytest.fixture
def branch(client, root_headers):
    response = client.post(
        "/branches",
        json={"branchId": "ROOT-BR", "branchName": "Root Branch", "waLink": "https://wa.link/root"},
        headers=root_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_sub_admin(client, root_headers, user_id="SUB1", username="sub1", password="sub-password-1", **extra):
    payload = {"userId": user_id, "username": username, "password": password, "branchId": "ROOT-BR"}
    payload.update(extra)
    response = client.post("/admins", json=payload, headers=root_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def sub_admin(client, root_headers, branch):
    data = create_sub_admin(client, root_headers)
    data["headers"] = bearer(login(client, "sub1", "sub-password-1"))
    return data


def create_client_account(client, sub_headers, user_id="CL1", phone="+911234567890", name="Client One", **extra):
    payload = {"userId": user_id, "name": name, "phone": phone}
    payload.update(extra)
    response = client.post("/clients/create", json=payload, headers=sub_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]
