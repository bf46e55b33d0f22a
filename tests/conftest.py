import os
import re
import tempfile

ADMIN_PASSWORD = "test-admin-password"

# Settings refuse to load without an admin password.
os.environ.setdefault("ADMIN_PASSWORD", ADMIN_PASSWORD)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.api.deps import get_admin_auth, get_db, get_endpoint_rate_limiter, get_fpl_client
from app.core.database import Base
from app.services.admin_auth import AdminAuthService
from app.services.fpl_client import FplClient
from app.services.rate_limiter import EndpointRateLimiter, SlidingWindowRateLimiter
from app.services.ttl_cache import TTLCache
from main import app

ENTRY_HISTORY_URL = re.compile(r"/entry/(\d+)/history/$")

# October 2024 holds gameweeks 5, 6 and 7
EVENTS = [
    {"id": 1, "deadline_time": "2024-08-16T17:30:00Z", "is_current": False, "is_next": False},
    {"id": 2, "deadline_time": "2024-08-24T10:00:00Z", "is_current": False, "is_next": False},
    {"id": 3, "deadline_time": "2024-08-31T10:00:00Z", "is_current": False, "is_next": False},
    {"id": 4, "deadline_time": "2024-09-14T10:00:00Z", "is_current": False, "is_next": False},
    {"id": 5, "deadline_time": "2024-10-01T00:00:00Z", "is_current": False, "is_next": False},
    {"id": 6, "deadline_time": "2024-10-19T10:00:00Z", "is_current": True, "is_next": False},
    {"id": 7, "deadline_time": "2024-10-31T23:59:59Z", "is_current": False, "is_next": True},
    {"id": 8, "deadline_time": "2024-11-02T10:00:00Z", "is_current": False, "is_next": False},
]


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_history(points_by_event):
    """Build an entry-history payload with running totals."""
    total = 0
    current = []
    for event, points in sorted(points_by_event.items()):
        total += points
        current.append({"event": event, "points": points, "total_points": total})
    return {"current": current}


class FakeResponse:

    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeFplSession:
    """Stands in for requests.Session, serving canned FPL payloads."""

    def __init__(self):
        self.bootstrap = {"events": [dict(e) for e in EVENTS]}
        self.histories = {}
        self.failures = {}  # entry_id -> status code or exception
        self.queued = []  # responses/exceptions served before anything else
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)

        if self.queued:
            outcome = self.queued.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        if url.endswith("/bootstrap-static/"):
            return FakeResponse(payload=self.bootstrap)

        match = ENTRY_HISTORY_URL.search(url)
        if match:
            entry_id = int(match.group(1))
            failure = self.failures.get(entry_id)
            if isinstance(failure, Exception):
                raise failure
            if failure is not None:
                return FakeResponse(status_code=failure, reason="Error")
            if entry_id not in self.histories:
                return FakeResponse(status_code=404, reason="Not Found")
            return FakeResponse(payload=self.histories[entry_id])

        return FakeResponse(status_code=404, reason="Not Found")

    def count(self, fragment):
        return sum(1 for url in self.calls if fragment in url)


@pytest.fixture
def fake_fpl():
    return FakeFplSession()


@pytest.fixture
def fpl_client(fake_fpl):
    return FplClient(
        session=fake_fpl,
        cache=TTLCache(),
        rate_limiter=SlidingWindowRateLimiter(max_requests=1000, window_seconds=60),
        base_url="https://fpl.test/api",
        sleep=lambda seconds: None
    )


@pytest.fixture(scope="session")
def test_db():
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)

@pytest.fixture
def db_session(test_db):
    session = test_db()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

@pytest.fixture
def admin_auth():
    return AdminAuthService(admin_password=ADMIN_PASSWORD, secret_key="test-secret-key")

@pytest.fixture
def client(db_session, fpl_client, admin_auth):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    limiter = EndpointRateLimiter()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fpl_client] = lambda: fpl_client
    app.dependency_overrides[get_endpoint_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_admin_auth] = lambda: admin_auth
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture
def admin_headers(client):
    response = client.post("api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
