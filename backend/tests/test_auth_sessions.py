import threading

from fastapi.testclient import TestClient

from kithu.main import create_app
from kithu.models.auth import RefreshToken
from kithu.models.user import User

from conftest import TEST_PASSWORD, auth_header, cookie_value, make_settings, signup

COOKIE_NAME = "kithu_refresh"


def _login(client, email: str, password: str = TEST_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _refresh(client, refresh_token: str):
    return client.post("/api/auth/refresh", headers={"Cookie": f"{COOKIE_NAME}={refresh_token}"})


def _logout(client, refresh_token: str | None = None):
    headers = {"Cookie": f"{COOKIE_NAME}={refresh_token}"} if refresh_token else {}
    return client.post("/api/auth/logout", headers=headers)


def test_signup_sets_secure_httponly_refresh_cookie(client):
    response = signup(client, "alpha@example.com")
    data = response.json()
    set_cookie = response.headers.get("set-cookie", "")

    assert data["email"] == "alpha@example.com"
    assert data["accessToken"]
    assert "refreshToken" not in data
    assert f"{COOKIE_NAME}=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Secure" in set_cookie
    assert "samesite=lax" in set_cookie.lower()
    assert "Max-Age=604800" in set_cookie
    assert "Path=/api/auth" in set_cookie


def test_signup_twice_conflicts_and_creates_one_user(client):
    signup(client, "dup@example.com")

    second = client.post("/api/auth/signup", json={"email": "DUP@example.com", "password": TEST_PASSWORD})
    assert second.status_code == 409

    db = client.app.state.session_factory()
    try:
        assert db.query(User).filter(User.email == "dup@example.com").count() == 1
    finally:
        db.close()


def test_signup_rejects_short_password_and_bad_email(client):
    assert client.post("/api/auth/signup", json={"email": "x@example.com", "password": "short"}).status_code == 422
    assert client.post("/api/auth/signup", json={"email": "not-an-email", "password": TEST_PASSWORD}).status_code == 422


def test_login_succeeds_with_right_password_only(client):
    signup(client, "beta@example.com")

    ok = _login(client, "beta@example.com")
    assert ok.status_code == 200
    assert ok.json()["email"] == "beta@example.com"
    assert COOKIE_NAME in ok.headers["set-cookie"]

    wrong = _login(client, "beta@example.com", "WrongPass123!")
    unknown = _login(client, "nobody@example.com")
    assert wrong.status_code == 401
    assert unknown.status_code == 401
    # Same message either way so accounts cannot be enumerated
    assert wrong.json() == unknown.json()


def test_short_or_malformed_login_is_invalid_credentials(client):
    signup(client, "short@example.com")

    wrong = _login(client, "short@example.com", "WrongPass123!")
    short = _login(client, "short@example.com", "short")
    not_an_email = _login(client, "not-an-email", "short")

    assert short.status_code == 401
    assert not_an_email.status_code == 401
    assert short.json() == wrong.json() == not_an_email.json()


def test_login_email_is_case_insensitive(client):
    signup(client, "Mixed.Case@Example.com")

    response = _login(client, "mixed.case@example.COM")
    assert response.status_code == 200
    assert response.json()["email"] == "mixed.case@example.com"


def test_refresh_rotates_token_and_rejects_replay(client):
    old_cookie = cookie_value(signup(client, "gamma@example.com").headers["set-cookie"], COOKIE_NAME)

    refresh_response = _refresh(client, old_cookie)
    assert refresh_response.status_code == 200
    assert refresh_response.json()["email"] == "gamma@example.com"
    new_cookie = cookie_value(refresh_response.headers["set-cookie"], COOKIE_NAME)
    assert new_cookie != old_cookie

    replay_response = _refresh(client, old_cookie)
    assert replay_response.status_code == 401
    assert "Max-Age=0" in replay_response.headers["set-cookie"]

    # The replacement is still good
    assert _refresh(client, new_cookie).status_code == 200


def test_refresh_without_cookie_is_unauthorized(client):
    response = client.post("/api/auth/refresh")
    assert response.status_code == 401


def test_logout_revokes_refresh_token(client):
    cookie = cookie_value(signup(client, "delta@example.com").headers["set-cookie"], COOKIE_NAME)

    logout_response = _logout(client, cookie)
    assert logout_response.status_code == 200
    assert logout_response.json() == {"message": "Logged out successfully"}
    assert "Max-Age=0" in logout_response.headers["set-cookie"]

    assert _refresh(client, cookie).status_code == 401

    db = client.app.state.session_factory()
    try:
        assert db.query(RefreshToken).filter(RefreshToken.revoked_at.is_(None)).count() == 0
    finally:
        db.close()


def test_logout_is_idempotent_and_never_fails(client):
    cookie = cookie_value(signup(client, "epsilon@example.com").headers["set-cookie"], COOKIE_NAME)

    assert _logout(client, cookie).status_code == 200
    assert _logout(client, cookie).status_code == 200
    assert _logout(client, "not-a-real-token").status_code == 200
    assert _logout(client).status_code == 200


def test_me_reads_identity_from_access_token(client):
    access_token = signup(client, "zeta@example.com").json()["accessToken"]

    response = client.get("/api/auth/me", headers=auth_header(access_token))
    assert response.status_code == 200
    assert response.json()["email"] == "zeta@example.com"
    assert response.json()["id"]

    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=auth_header("garbage")).status_code == 401


def test_concurrent_refresh_on_sqlite_file_has_one_winner(tmp_path):
    settings = make_settings(database_url=f"sqlite:///{tmp_path / 'kithu.db'}")
    with TestClient(create_app(settings)) as file_client:
        cookie = cookie_value(signup(file_client, "race@example.com").headers["set-cookie"], COOKIE_NAME)

        attempts = 8
        barrier = threading.Barrier(attempts)
        statuses = []

        def attempt():
            barrier.wait()
            statuses.append(_refresh(file_client, cookie).status_code)

        threads = [threading.Thread(target=attempt) for _ in range(attempts)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(statuses) == [200] + [401] * (attempts - 1)

        db = file_client.app.state.session_factory()
        try:
            assert db.query(RefreshToken).filter(RefreshToken.revoked_at.is_(None)).count() == 1
        finally:
            db.close()
