import pytest

from app.database.supabase_client import get_service_client_factory
from app.main import app
from tests.fakes import FakeAPIError, auth


@pytest.fixture
def admin(fake):
    return fake.add_user("admin", role="admin")


def test_invite_requires_a_session(client, fake):
    response = client.post("/api/invite", json={"email": "jane@example.com"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert fake.auth.admin.invited == []
    assert fake.service_clients_created == 0


@pytest.mark.parametrize("role", ["participant", "moderator"])
def test_invite_is_admin_only(client, fake, role):
    fake.add_user("caller", role=role)

    response = client.post("/api/invite", json={"email": "jane@example.com"}, headers=auth("caller"))

    assert response.status_code == 403
    assert response.json() == {"error": "Only admins can invite users"}
    assert fake.auth.admin.invited == []
    assert fake.service_clients_created == 0


def test_invite_without_profile_is_403(client, fake):
    fake.add_user("ghost", profile=False)

    response = client.post("/api/invite", json={"email": "jane@example.com"}, headers=auth("ghost"))

    assert response.status_code == 403
    assert fake.auth.admin.invited == []


def test_admin_invites_with_role_metadata(client, fake, admin):
    response = client.post(
        "/api/invite",
        json={"email": "jane@example.com", "fullName": "Jane Doe", "role": "moderator"},
        headers=auth("admin")
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "jane@example.com"
    email, options = fake.auth.admin.invited[0]
    assert email == "jane@example.com"
    assert options["data"] == {"full_name": "Jane Doe", "role": "moderator"}
    assert options["redirect_to"] == "http://localhost:3000/login"
    assert fake.service_clients_created == 1


def test_invite_defaults_role_to_participant(client, fake, admin):
    client.post("/api/invite", json={"email": "sam@example.com"}, headers=auth("admin"))

    assert fake.auth.admin.invited[0][1]["data"]["role"] == "participant"


def test_invite_without_email_is_400(client, fake, admin):
    response = client.post("/api/invite", json={"fullName": "No Email"}, headers=auth("admin"))

    assert response.status_code == 400
    assert response.json() == {"error": "Email is required"}
    assert fake.auth.admin.invited == []


def test_invite_with_unknown_role_is_400(client, fake, admin):
    response = client.post("/api/invite", json={"email": "jane@example.com", "role": "owner"}, headers=auth("admin"))

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role: owner"}


def test_invite_passes_upstream_error_through(client, fake, admin):
    fake.auth.admin.error = FakeAPIError("A user with this email address has already been registered")

    response = client.post("/api/invite", json={"email": "jane@example.com"}, headers=auth("admin"))

    assert response.status_code == 400
    assert response.json() == {"error": "A user with this email address has already been registered"}


def test_invite_unexpected_failure_is_generic_500(client, fake, admin):
    def broken_factory():
        raise RuntimeError("connection pool exhausted")

    app.dependency_overrides[get_service_client_factory] = lambda: broken_factory

    response = client.post("/api/invite", json={"email": "jane@example.com"}, headers=auth("admin"))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send invitation"}


def test_delete_requires_a_session(client, fake):
    response = client.delete("/api/users/user-bob")

    assert response.status_code == 401
    assert fake.auth.admin.deleted == []


@pytest.mark.parametrize("role", ["participant", "moderator"])
def test_delete_is_admin_only(client, fake, role):
    fake.add_user("caller", role=role)
    fake.add_user("bob")

    response = client.delete("/api/users/user-bob", headers=auth("caller"))

    assert response.status_code == 403
    assert response.json() == {"error": "Only admins can delete users"}
    assert fake.auth.admin.deleted == []
    assert fake.service_clients_created == 0


@pytest.mark.parametrize("role", ["participant", "admin"])
def test_nobody_can_delete_themselves(client, fake, role):
    user_id = fake.add_user("caller", role=role)

    response = client.delete(f"/api/users/{user_id}", headers=auth("caller"))

    assert response.status_code == 400
    assert response.json() == {"error": "You cannot delete yourself"}
    assert fake.auth.admin.deleted == []


def test_admin_deletes_another_user(client, fake, admin):
    fake.add_user("bob")

    response = client.delete("/api/users/user-bob", headers=auth("admin"))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake.auth.admin.deleted == ["user-bob"]
    assert all(p["id"] != "user-bob" for p in fake.tables["profiles"])


def test_delete_passes_upstream_error_through(client, fake, admin):
    fake.auth.admin.error = FakeAPIError("User not found")

    response = client.delete("/api/users/user-missing", headers=auth("admin"))

    assert response.status_code == 400
    assert response.json() == {"error": "User not found"}


def test_staff_can_search_users(client, fake):
    fake.add_user("mod", role="moderator", full_name="Mary Moderator")
    fake.add_user("alice", full_name="Alice Walker")
    fake.add_user("bob", full_name="Bob Stone")

    response = client.get("/api/admin/users", params={"q": "walk"}, headers=auth("mod"))

    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == ["user-alice"]


def test_participants_cannot_list_users(client, fake):
    fake.add_user("alice")

    response = client.get("/api/admin/users", headers=auth("alice"))

    assert response.status_code == 403


def test_role_change_is_seen_on_the_users_next_request(client, fake, admin):
    fake.add_user("alice")
    assert client.get("/api/auth/me", headers=auth("alice")).json()["role"] == "participant"

    response = client.patch("/api/admin/users/user-alice/role", json={"role": "moderator"}, headers=auth("admin"))

    assert response.status_code == 200
    me = client.get("/api/auth/me", headers=auth("alice")).json()
    assert me["role"] == "moderator"
    assert me["navigation"][-1]["label"] == "Admin"


def test_moderators_cannot_change_roles(client, fake):
    fake.add_user("mod", role="moderator")
    fake.add_user("alice")

    response = client.patch("/api/admin/users/user-alice/role", json={"role": "admin"}, headers=auth("mod"))

    assert response.status_code == 403
    assert response.json() == {"error": "Only admins can change roles"}


def test_deleted_users_session_stops_working_at_once(client, fake, admin):
    fake.add_user("bob")
    assert client.get("/api/auth/me", headers=auth("bob")).status_code == 200

    client.delete("/api/users/user-bob", headers=auth("admin"))

    response = client.get("/api/auth/me", headers=auth("bob"))
    assert response.status_code == 401
    assert client.get("/api/auth/me", headers=auth("admin")).status_code == 200
