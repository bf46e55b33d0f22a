import pytest

from app.core.config import settings
from app.models.user import User, UserStatus
from tests.conftest import ADMIN_PASSWORD, make_history

@pytest.fixture(autouse=True)
def db_cleanup(db_session):
    db_session.query(User).delete()
    db_session.commit()

def add_user(db_session, name, entry_id, status=UserStatus.APPROVED, company=None):
    user = User(name=name, email=f"{name.lower()}@example.com", company=company,
                entry_id=entry_id, status=status)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

class TestRegistrationAPI:

    def test_register_creates_pending_user(self, client, fake_fpl, db_session):
        fake_fpl.histories[555] = make_history({1: 50})
        response = client.post("api/registrations", json={
            "name": "Alice", "email": "alice@example.com", "company": "Acme", "entry_id": 555
        })
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True

        user = db_session.query(User).filter(User.id == data["id"]).first()
        assert user.status == UserStatus.PENDING
        assert user.entry_id == 555

    def test_register_rejects_unknown_entry(self, client):
        response = client.post("api/registrations", json={
            "name": "Bob", "email": "bob@example.com", "entry_id": 999
        })
        assert response.status_code == 404
        assert response.json()["error_code"] == "ENTRY_NOT_FOUND"

    def test_register_accepts_when_upstream_down(self, client, fake_fpl, db_session):
        fake_fpl.failures[777] = 503
        response = client.post("api/registrations", json={
            "name": "Carol", "email": "carol@example.com", "entry_id": 777
        })
        assert response.status_code == 200
        assert db_session.query(User).count() == 1

    def test_register_validates_payload(self, client):
        response = client.post("api/registrations", json={
            "name": "A", "email": "not-an-email", "entry_id": -1
        })
        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"name", "email", "entry_id"} <= fields

    @pytest.mark.parametrize("email", ["a@b..c", "alice@", "alice example.com"])
    def test_register_rejects_malformed_email(self, client, fake_fpl, db_session, email):
        fake_fpl.histories[555] = make_history({1: 50})
        response = client.post("api/registrations", json={
            "name": "Alice", "email": email, "entry_id": 555
        })
        assert response.status_code == 422
        assert db_session.query(User).count() == 0

    def test_registration_rate_limit(self, client, fake_fpl):
        fake_fpl.histories[555] = make_history({1: 50})
        payload = {"name": "Dave", "email": "dave@example.com", "entry_id": 555}
        for _ in range(5):
            assert client.post("api/registrations", json=payload).status_code == 200
        response = client.post("api/registrations", json=payload)
        assert response.status_code == 429
        assert response.json()["error_code"] == "RATE_LIMITED"
        assert "Retry-After" in response.headers
        assert response.headers["X-RateLimit-Remaining"] == "0"


class TestUserAdminAPI:

    def test_requires_admin_token(self, client):
        response = client.get("api/users")
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_legacy_cookie_is_not_trusted(self, client):
        client.cookies.set("admin", "1")
        response = client.get("api/users")
        assert response.status_code == 401

    def test_rejects_garbage_token(self, client):
        response = client.get("api/users", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_list_users_filtered_by_status(self, client, admin_headers, db_session):
        add_user(db_session, "Alice", 1, UserStatus.PENDING)
        add_user(db_session, "Bob", 2, UserStatus.APPROVED)

        response = client.get("api/users", headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()) == 2

        response = client.get("api/users?status=PENDING", headers=admin_headers)
        data = response.json()
        assert [u["name"] for u in data] == ["Alice"]
        assert data[0]["status"] == "PENDING"

    def test_admin_create_user_is_approved(self, client, admin_headers):
        response = client.post("api/users", headers=admin_headers, json={
            "name": "Eve", "email": "eve@example.com", "entry_id": 42
        })
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

    def test_approve_and_block(self, client, admin_headers, db_session):
        user = add_user(db_session, "Frank", 3, UserStatus.PENDING)

        response = client.patch(f"api/users/{user.id}", headers=admin_headers,
                                json={"status": "APPROVED"})
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        response = client.patch(f"api/users/{user.id}", headers=admin_headers,
                                json={"status": "BLOCKED"})
        assert response.json()["status"] == "BLOCKED"

    def test_patch_rejects_pending(self, client, admin_headers, db_session):
        user = add_user(db_session, "Gina", 4)
        response = client.patch(f"api/users/{user.id}", headers=admin_headers,
                                json={"status": "PENDING"})
        assert response.status_code == 422

    def test_delete_user(self, client, admin_headers, db_session):
        user = add_user(db_session, "Hank", 5)
        response = client.delete(f"api/users/{user.id}", headers=admin_headers)
        assert response.status_code == 200
        assert db_session.query(User).count() == 0

    def test_unknown_user(self, client, admin_headers):
        response = client.delete("api/users/12345", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "USER_NOT_FOUND"


class TestAdminLoginAPI:

    def test_login_sets_token_cookie(self, client):
        response = client.post("api/admin/login", json={"password": ADMIN_PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["token"]
        assert "admin-token" in response.cookies

    def test_wrong_password(self, client):
        response = client.post("api/admin/login", json={"password": "nope"})
        assert response.status_code == 401

    def test_lockout_after_five_failures(self, client):
        for _ in range(5):
            assert client.post("api/admin/login", json={"password": "nope"}).status_code == 401

        response = client.post("api/admin/login", json={"password": ADMIN_PASSWORD})
        assert response.status_code == 429
        assert response.json()["error_code"] == "TOO_MANY_ATTEMPTS"
        assert response.json()["retry_after"] > 0

    def test_lockout_ignores_user_agent_and_forwarded_for(self, client):
        for _ in range(5):
            response = client.post("api/admin/login", json={"password": "nope"},
                                   headers={"User-Agent": "ua"})
            assert response.status_code == 401

        for headers in ({"User-Agent": "ua-2"}, {"User-Agent": "ua", "X-Forwarded-For": "9.9.9.9"}):
            response = client.post("api/admin/login", json={"password": ADMIN_PASSWORD}, headers=headers)
            assert response.status_code == 429
            assert response.json()["error_code"] == "TOO_MANY_ATTEMPTS"

    def test_forwarded_for_used_behind_trusted_proxy(self, client, monkeypatch):
        monkeypatch.setattr(settings, "TRUST_PROXY_HEADERS", True)
        for _ in range(5):
            client.post("api/admin/login", json={"password": "nope"},
                        headers={"X-Forwarded-For": "10.0.0.1"})

        locked = client.post("api/admin/login", json={"password": ADMIN_PASSWORD},
                             headers={"X-Forwarded-For": "10.0.0.1"})
        assert locked.status_code == 429
        other = client.post("api/admin/login", json={"password": ADMIN_PASSWORD},
                            headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"})
        assert other.status_code == 200


class TestWeeklyAPI:

    def test_weekly_points_current_gameweek(self, client, fake_fpl):
        fake_fpl.histories[555] = make_history({5: 40, 6: 72})
        response = client.get("api/fpl/weekly?entry_id=555")
        assert response.status_code == 200
        assert response.json() == {"event_id": 6, "points": 72}

    def test_weekly_points_missing_gameweek_is_zero(self, client, fake_fpl):
        fake_fpl.histories[555] = make_history({5: 40, 6: 72})
        response = client.get("api/fpl/weekly?entry_id=555&gw=10")
        assert response.json() == {"event_id": 10, "points": 0}

    def test_weekly_points_unknown_entry(self, client):
        response = client.get("api/fpl/weekly?entry_id=31337")
        assert response.status_code == 404
        assert response.json()["error_code"] == "ENTRY_NOT_FOUND"

    def test_upstream_failure(self, client, fake_fpl):
        fake_fpl.failures[555] = 500
        response = client.get("api/fpl/weekly?entry_id=555&gw=1")
        assert response.status_code == 502
        assert response.json()["error_code"] == "UPSTREAM_ERROR"


class TestLeaderboardAPI:

    def test_leaderboard(self, client, fake_fpl, db_session):
        add_user(db_session, "Alice", 1)
        add_user(db_session, "bob", 2)
        add_user(db_session, "Carl", 3)
        add_user(db_session, "Pending", 4, UserStatus.PENDING)
        fake_fpl.histories[1] = make_history({6: 60})
        fake_fpl.histories[2] = make_history({6: 80})
        fake_fpl.histories[3] = make_history({6: 60})
        fake_fpl.histories[4] = make_history({6: 100})

        response = client.get("api/leaderboard")
        assert response.status_code == 200
        data = response.json()
        assert [(e["name"], e["rank"], e["points"]) for e in data["leaderboard"]] == [
            ("bob", 1, 80), ("Alice", 2, 60), ("Carl", 3, 60)
        ]
        assert data["meta"]["gameweek"] == "current"
        assert data["meta"]["total_users"] == 3
        assert data["warnings"] == []

    def test_leaderboard_partial_failure(self, client, fake_fpl, db_session):
        for entry_id in range(1, 6):
            add_user(db_session, f"User{entry_id}", entry_id)
            fake_fpl.histories[entry_id] = make_history({3: entry_id * 10})
        fake_fpl.failures[3] = 404

        response = client.get("api/leaderboard?gw=3")
        assert response.status_code == 200
        data = response.json()
        assert data["meta"]["successful_fetches"] == 4
        assert data["meta"]["failed_fetches"] == 1
        assert data["meta"]["gameweek"] == 3
        assert [e["entry_id"] for e in data["leaderboard"]] == [5, 4, 2, 1]
        assert data["warnings"][0]["entry_id"] == 3
        assert "not found" in data["warnings"][0]["error"]

    def test_leaderboard_rejects_bad_gameweek(self, client):
        assert client.get("api/leaderboard?gw=39").status_code == 422

    def test_empty_leaderboard(self, client):
        response = client.get("api/leaderboard")
        assert response.status_code == 200
        assert response.json()["leaderboard"] == []


class TestMonthlyAPI:

    def test_monthly_leaderboard(self, client, fake_fpl, db_session):
        add_user(db_session, "A", 1)
        add_user(db_session, "B", 2)
        fake_fpl.histories[1] = make_history({1: 100, 4: 100, 5: 10, 6: 20, 7: 0})
        fake_fpl.histories[2] = make_history({5: 15, 6: 15, 7: 15})

        response = client.get("api/monthly?year=2024&month=10")
        assert response.status_code == 200
        data = response.json()
        assert data["month_event_ids"] == [5, 6, 7]

        first, second = data["leaderboard"]
        assert (first["name"], first["month_points"], first["gw_wins"]) == ("B", 45, 2)
        assert (second["name"], second["month_points"], second["season_total"]) == ("A", 30, 230)
        assert data["winner"]["name"] == "B"

    def test_monthly_without_gameweeks(self, client, db_session):
        add_user(db_session, "A", 1)
        response = client.get("api/monthly?year=2024&month=6")
        assert response.status_code == 200
        data = response.json()
        assert data["month_event_ids"] == []
        assert data["leaderboard"] == []
        assert data["winner"] is None

    def test_monthly_validates_month(self, client):
        assert client.get("api/monthly?year=2024&month=13").status_code == 422


class TestHealthAPI:

    def test_health(self, client):
        response = client.get("api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["fpl_api"]["status"] == "ok"
