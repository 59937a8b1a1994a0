from datetime import datetime, timedelta, timezone

import pytest

from app.modules.auth.callback import (
    AuthCallbackHandler, CallbackState, classify, needs_password_setup, safe_next_path
)
from app.modules.auth.schemas import CallbackRequest
from app.modules.auth.service import AuthService
from tests.fakes import auth

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
WINDOW = timedelta(minutes=10)
APP_URL = "http://localhost:3000"


@pytest.fixture
def handler(fake):
    return AuthCallbackHandler(AuthService(fake), WINDOW, clock=lambda: NOW)


def test_classify_prefers_token_fragment_over_code():
    assert classify(CallbackRequest(access_token="a", refresh_token="r", code="c")) is CallbackState.TOKEN_FRAGMENT_PRESENT
    assert classify(CallbackRequest(code="c")) is CallbackState.AUTHORIZATION_CODE_PRESENT
    assert classify(CallbackRequest(access_token="a")) is CallbackState.NO_CREDENTIALS
    assert classify(CallbackRequest()) is CallbackState.NO_CREDENTIALS


@pytest.mark.parametrize("link_type", ["invite", "signup", "recovery"])
def test_password_setup_link_types(link_type):
    assert needs_password_setup(link_type, "2020-01-01T00:00:00Z", NOW, WINDOW)


def test_password_setup_for_recent_account_without_link_type():
    assert needs_password_setup(None, NOW - timedelta(minutes=9), NOW, WINDOW)
    assert not needs_password_setup(None, NOW - timedelta(minutes=10), NOW, WINDOW)
    assert not needs_password_setup("magiclink", NOW - timedelta(days=3), NOW, WINDOW)
    assert not needs_password_setup(None, None, NOW, WINDOW)


def test_safe_next_path_only_allows_local_paths():
    assert safe_next_path("/journal") == "/journal"
    assert safe_next_path(None) == "/dashboard"
    assert safe_next_path("https://evil.example") == "/dashboard"
    assert safe_next_path("//evil.example/path") == "/dashboard"


def test_no_credentials_redirects_to_login_without_touching_session(handler, fake):
    outcome = handler.handle(CallbackRequest())

    assert outcome.state is CallbackState.NO_CREDENTIALS
    assert outcome.redirect_to == "/login?error=No%20authentication%20data%20found"
    assert outcome.delay_ms == 2000
    assert outcome.session is None
    assert fake.auth.session_calls == []
    assert fake.auth.code_exchanges == []
    assert fake.auth.admin.signed_out == []


def test_invite_fragment_routes_to_password_setup(handler, fake):
    fake.add_user("jane", created_at="2020-01-01T00:00:00+00:00")

    outcome = handler.handle(CallbackRequest(access_token="jane", refresh_token="refresh-jane", type="invite"))

    assert outcome.state is CallbackState.SESSION_ESTABLISHED
    assert outcome.redirect_to == "/auth/set-password"
    assert outcome.session.tokens.access_token == "jane"
    assert outcome.delay_ms == 0


def test_code_for_brand_new_account_routes_to_password_setup(handler, fake):
    fake.add_user("jane", created_at=(NOW - timedelta(minutes=2)).isoformat())
    fake.auth.codes["code-1"] = "jane"

    outcome = handler.handle(CallbackRequest(code="code-1"), code_verifier="verifier")

    assert outcome.redirect_to == "/auth/set-password"
    assert fake.auth.code_exchanges[0]["code_verifier"] == "verifier"


def test_code_for_established_account_honours_next(handler, fake):
    fake.add_user("jane")
    fake.auth.codes["code-1"] = "jane"

    assert handler.handle(CallbackRequest(code="code-1")).redirect_to == "/dashboard"
    assert handler.handle(CallbackRequest(code="code-1", next="/messages")).redirect_to == "/messages"


def test_failed_exchange_redirects_to_login_after_delay(handler):
    outcome = handler.handle(CallbackRequest(code="expired"))

    assert outcome.state is CallbackState.FAILED
    assert outcome.redirect_to == "/login?error=Authentication%20failed"
    assert outcome.delay_ms == 2000
    assert outcome.session is None


def test_get_callback_exchanges_code_and_sets_cookies(client, fake):
    fake.add_user("jane")
    fake.auth.codes["code-1"] = "jane"

    response = client.get("/auth/callback", params={"code": "code-1", "type": "recovery"}, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == f"{APP_URL}/auth/set-password"
    assert response.cookies.get("sb-access-token") == "jane"


def test_get_callback_without_credentials(client, fake):
    response = client.get("/auth/callback", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == f"{APP_URL}/login?error=No%20authentication%20data%20found"
    assert fake.auth.session_calls == []
    assert fake.auth.code_exchanges == []
    assert "sb-access-token" not in response.cookies


def test_get_callback_with_bad_code(client):
    response = client.get("/auth/callback", params={"code": "bogus"}, follow_redirects=False)

    assert response.headers["location"] == f"{APP_URL}/login?error=Authentication%20failed"


def test_post_callback_with_rejected_tokens(client, fake):
    fake.add_user("jane")

    response = client.post("/auth/callback", json={"access_token": "jane", "refresh_token": "stale"})

    assert response.status_code == 200
    assert response.json() == {
        "state": "failed",
        "redirect_to": "/login?error=Authentication%20failed",
        "delay_ms": 2000
    }


def test_invited_moderator_sets_password_and_lands_on_dashboard(client, fake):
    fake.add_user("admin", role="admin")
    invite = client.post(
        "/api/invite",
        json={"email": "jane@example.com", "fullName": "Jane Doe", "role": "moderator"},
        headers=auth("admin")
    )
    assert invite.status_code == 200

    fake.add_user("jane", email="jane@example.com", role="moderator",
                  created_at=datetime.now(timezone.utc).isoformat())
    callback = client.post(
        "/auth/callback",
        json={"access_token": "jane", "refresh_token": "refresh-jane", "type": "invite"}
    )
    assert callback.json()["state"] == "session_established"
    assert callback.json()["redirect_to"] == "/auth/set-password"

    done = client.post(
        "/api/auth/set-password",
        json={"password": "pilgrim-2024", "confirm_password": "pilgrim-2024"}
    )
    assert done.status_code == 200
    assert done.json()["redirect_to"] == "/dashboard"
    assert fake.auth.password_updates == [("user-jane", "pilgrim-2024")]
