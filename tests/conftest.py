"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

import json
import os

# Settings are read at import time, so the environment must be
# in place before anything from teller_ledger is imported.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["TELLER_CODE"] = "0612"
os.environ["JWT_SECRET"] = "test-secret-with-at-least-32-bytes-of-entropy"
os.environ["PIN_HASH_ITERATIONS"] = "1000"
os.environ["IDENTITY_API_URL"] = ""
os.environ["IDENTITY_ADMIN_TOKEN"] = ""

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from teller_ledger.api.bank import get_identity_client
from teller_ledger.main import app
from teller_ledger.models.base import Base, get_db
from teller_ledger.services.identity_client import IdentityAdminClient


# SQLite for tests, no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"
JWT_SECRET = os.environ["JWT_SECRET"]
TELLER_HEADERS = {"X-Teller-Code": "0612"}

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """
    Create all tables before each test, drop them after.

    autouse=True means every test gets this automatically.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """Independent sessions, for tests that run requests on several threads."""
    return TestSessionLocal


@pytest.fixture
def identity_requests():
    """Requests received by the fake identity provider, in order."""
    return []


@pytest.fixture
def identity_client(identity_requests):
    """
    Identity admin client backed by httpx.MockTransport.

    Every call succeeds unless the email contains "taken", which
    the fake provider rejects with 422 like a duplicate signup.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        identity_requests.append(request)
        body = json.loads(request.content)
        if "taken" in body["email"]:
            return httpx.Response(
                422, json={"msg": "A user with this email address has already been registered"}
            )
        return httpx.Response(200, json={"id": "user-1", "email": body["email"]})

    return IdentityAdminClient(
        base_url="https://identity.test/.netlify/identity",
        admin_token="admin-token",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def client(db_session, identity_client):
    """
    Provide a test client with the test database.

    We override the get_db dependency so the FastAPI app
    uses our test session instead of the real database, and
    the identity client so no request leaves the process.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(email: str, secret: str = JWT_SECRET, in_metadata: bool = False) -> str:
    """Sign a token the way the identity provider does."""
    claims = {"sub": "user-1", "aud": "authenticated"}
    if in_metadata:
        claims["user_metadata"] = {"email": email}
    else:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def teller_headers():
    return dict(TELLER_HEADERS)


@pytest.fixture
def customer_headers():
    """Factory: bearer headers for a customer email."""
    def _headers(email: str) -> dict:
        return {"Authorization": f"Bearer {make_token(email)}"}
    return _headers


@pytest.fixture
def token_for():
    """Factory: a raw signed token, for tests that tamper with it."""
    return make_token
