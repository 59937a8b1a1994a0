from app.core.cache import IDENTITY, session_cache, session_key
from tests.fakes import FakeAPIError, auth


def test_login_sets_session_cookies(client, fake):
    user_id = fake.add_user("jane", email="jane@example.com", password="s3cret-pass")

    response = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "s3cret-pass"})

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == "jane"
    assert body["user_id"] == user_id
    assert response.cookies.get("sb-access-token") == "jane"
    assert response.cookies.get("sb-refresh-token") == "refresh-jane"


def test_login_with_wrong_password_is_401(client, fake):
    fake.add_user("jane", email="jane@example.com", password="s3cret-pass")

    response = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_login_validation_error_uses_error_body(client):
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})

    assert response.status_code == 400
    assert "email" in response.json()["error"]


def test_me_requires_a_session(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_me_with_invalid_token_is_401(client):
    response = client.get("/api/auth/me", headers=auth("forged"))

    assert response.status_code == 401


def test_me_for_participant_hides_admin_navigation(client, fake):
    fake.add_user("alice", full_name="Alice Walker")

    body = client.get("/api/auth/me", headers=auth("alice")).json()

    assert body["name"] == "Alice Walker"
    assert body["role"] == "participant"
    assert body["has_profile"] is True
    labels = [item["label"] for item in body["navigation"]]
    assert labels == ["Home", "My Cohort", "Journal", "Messages", "Documents"]


def test_me_for_moderator_includes_admin_navigation(client, fake):
    fake.add_user("mod", role="moderator")

    body = client.get("/api/auth/me", headers=auth("mod")).json()

    assert body["role"] == "moderator"
    assert body["navigation"][-1] == {"href": "/admin", "label": "Admin"}


def test_me_without_profile_falls_back_to_email(client, fake):
    fake.add_user("ghost", email="ghost@example.com", profile=False)

    body = client.get("/api/auth/me", headers=auth("ghost")).json()

    assert body["has_profile"] is False
    assert body["name"] == "ghost@example.com"
    assert body["role"] == "participant"
    assert "Admin" not in [item["label"] for item in body["navigation"]]


def test_session_cookie_is_accepted_instead_of_bearer(client, fake):
    fake.add_user("alice")
    client.cookies.set("sb-access-token", "alice")

    response = client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["id"] == "user-alice"


def test_logout_revokes_the_session_remotely(client, fake):
    fake.add_user("alice")
    assert client.get("/api/auth/me", headers=auth("alice")).status_code == 200

    response = client.post("/api/auth/logout", headers=auth("alice"))

    assert response.status_code == 200
    assert fake.auth.admin.signed_out == [("alice", "global")]
    assert session_cache.get(session_key("alice"), "user", IDENTITY) is None


def test_logout_without_a_session_only_clears_cookies(client, fake):
    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert fake.auth.admin.signed_out == []


def test_logout_succeeds_when_remote_sign_out_fails(client, fake):
    fake.add_user("alice")
    fake.auth.admin.sign_out_error = FakeAPIError("network down")

    response = client.post("/api/auth/logout", headers=auth("alice"))

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}
    cleared = response.headers.get_list("set-cookie")
    assert any(header.startswith('sb-access-token=""') for header in cleared)
    assert any(header.startswith('sb-refresh-token=""') for header in cleared)


def test_set_password_updates_the_signed_in_user(client, fake):
    fake.add_user("jane")
    client.cookies.set("sb-access-token", "jane")
    client.cookies.set("sb-refresh-token", "refresh-jane")

    response = client.post(
        "/api/auth/set-password",
        json={"password": "long-enough", "confirm_password": "long-enough"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "redirect_to": "/dashboard"}
    assert fake.auth.password_updates == [("user-jane", "long-enough")]


def test_set_password_rejects_mismatch_and_short_passwords(client, fake):
    fake.add_user("jane")
    client.cookies.set("sb-access-token", "jane")
    client.cookies.set("sb-refresh-token", "refresh-jane")

    mismatch = client.post("/api/auth/set-password", json={"password": "long-enough", "confirm_password": "different"})
    short = client.post("/api/auth/set-password", json={"password": "short", "confirm_password": "short"})

    assert mismatch.status_code == 400
    assert mismatch.json() == {"error": "Passwords do not match"}
    assert short.status_code == 400
    assert short.json() == {"error": "Password must be at least 8 characters"}
    assert fake.auth.password_updates == []


def test_set_password_without_refresh_cookie_is_401(client, fake):
    fake.add_user("jane")

    response = client.post(
        "/api/auth/set-password",
        json={"password": "long-enough", "confirm_password": "long-enough"},
        headers=auth("jane")
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Auth session missing"}
