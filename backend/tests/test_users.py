from datetime import datetime

from conftest import ADMIN, BORROWER, MANAGER, auth_headers, count, fetch, make_user, seed


USERS = "/api/v1/users/"


def test_upsert_creates_user_once(client, db):
    headers = auth_headers("new@lendhub.io")

    first = client.post(USERS, json={"displayName": "New Person", "photoURL": "https://img/x.png"}, headers=headers)
    second = client.post(USERS, json={"displayName": "Renamed"}, headers=headers)

    assert first.status_code == 200
    assert first.json()["role"] == "user"
    assert first.json()["photoURL"] == "https://img/x.png"
    assert second.json()["userId"] == first.json()["userId"]
    assert second.json()["displayName"] == "New Person"
    assert count(db, "users", {"email": "new@lendhub.io"}) == 1


def test_upsert_without_body(client, db):
    resp = client.post(USERS, headers=auth_headers("bare@lendhub.io"))
    assert resp.status_code == 200
    assert resp.json()["email"] == "bare@lendhub.io"


def test_upsert_requires_token(client, db):
    assert client.post(USERS, json={}).status_code == 401


def test_my_role(client, staff):
    assert client.get(USERS + "me/role", headers=auth_headers(MANAGER)).json() == {"role": "manager"}
    assert client.get(USERS + "me/role", headers=auth_headers("unknown@lendhub.io")).json() == {"role": "user"}


def test_me(client, staff):
    resp = client.get(USERS + "me", headers=auth_headers(BORROWER))
    assert resp.json()["userId"] == "user_borrower"
    assert client.get(USERS + "me", headers=auth_headers("unknown@lendhub.io")).status_code == 404


def test_update_profile(client, staff):
    resp = client.patch(USERS + "me", json={"displayName": "Bo Rower"}, headers=auth_headers(BORROWER))

    assert resp.status_code == 200
    assert resp.json()["displayName"] == "Bo Rower"
    assert fetch(staff, "users", {"email": BORROWER})["role"] == "user"


def test_role_request_then_grant(client, staff):
    requested = client.post(USERS + "me/role-request", json={"applyFor": "manager"}, headers=auth_headers(BORROWER))
    assert requested.status_code == 200
    assert requested.json()["applyFor"] == "manager"

    granted = client.patch(USERS + "user_borrower/role", headers=auth_headers(ADMIN))

    assert granted.status_code == 200
    assert granted.json()["role"] == "manager"
    assert granted.json()["applyFor"] is None
    assert client.get("/api/v1/manager/dashboard-stats", headers=auth_headers(BORROWER)).status_code == 200


def test_role_request_for_plain_user_is_rejected(client, staff):
    resp = client.post(USERS + "me/role-request", json={"applyFor": "user"}, headers=auth_headers(BORROWER))
    assert resp.status_code == 422


def test_grant_without_request_needs_a_role(client, staff):
    assert client.patch(USERS + "user_borrower/role", headers=auth_headers(ADMIN)).status_code == 422

    resp = client.patch(USERS + "user_borrower/role", json={"role": "admin"}, headers=auth_headers(ADMIN))
    assert resp.json()["role"] == "admin"


def test_only_admins_change_roles(client, staff):
    resp = client.patch(USERS + "user_borrower/role", json={"role": "admin"}, headers=auth_headers(MANAGER))
    assert resp.status_code == 403
    assert fetch(staff, "users", {"email": BORROWER})["role"] == "user"


def test_suspend_user(client, staff):
    resp = client.patch(
        USERS + "user_manager/suspend",
        json={"reason": "fraud", "feedback": "Contact support"},
        headers=auth_headers(ADMIN),
    )

    assert resp.status_code == 200
    assert resp.json()["role"] == "suspended"
    assert resp.json()["suspendReason"] == "fraud"
    assert client.get("/api/v1/manager/dashboard-stats", headers=auth_headers(MANAGER)).status_code == 403

    restored = client.patch(USERS + "user_manager/role", json={"role": "manager"}, headers=auth_headers(ADMIN))
    assert restored.json()["suspendReason"] is None


def test_suspend_unknown_user(client, staff):
    assert client.patch(USERS + "user_ghost/suspend", json={}, headers=auth_headers(ADMIN)).status_code == 404


def test_list_users(client, db):
    seed(
        db,
        "users",
        make_user(ADMIN, "admin", created_at=datetime(2026, 1, 1)),
        make_user("ann@lendhub.io", "user", created_at=datetime(2026, 2, 1)),
        make_user("bob@lendhub.io", "manager", created_at=datetime(2026, 3, 1)),
    )
    headers = auth_headers(ADMIN)

    everyone = client.get(USERS, headers=headers).json()
    assert [u["email"] for u in everyone] == ["bob@lendhub.io", "ann@lendhub.io", ADMIN]

    managers = client.get(USERS, params={"role": "manager"}, headers=headers).json()
    assert [u["email"] for u in managers] == ["bob@lendhub.io"]

    found = client.get(USERS, params={"search": "ANN"}, headers=headers).json()
    assert [u["email"] for u in found] == ["ann@lendhub.io"]


def test_delete_user(client, staff):
    headers = auth_headers(ADMIN)
    assert client.delete(USERS + "user_borrower", headers=headers).status_code == 200
    assert client.delete(USERS + "user_borrower", headers=headers).status_code == 404
    assert fetch(staff, "users", {"email": BORROWER}) is None
