from datetime import timedelta

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from app.api import deps
from app.core.auth import create_access_token, verify_token
from app.core.database import get_database
from app.core.errors import register_exception_handlers
from app.main import app
from app.models.user import Role

from conftest import ADMIN, BORROWER, MANAGER, auth_headers, make_user, seed


ADMIN_DASHBOARD = "/api/v1/admin/dashboard-stats"
MANAGER_DASHBOARD = "/api/v1/manager/dashboard-stats"


class _SpyUsers:
    def __init__(self):
        self.reads = 0

    async def find_one(self, *args, **kwargs):
        self.reads += 1
        return None


class _SpyDB:
    def __init__(self):
        self.users = _SpyUsers()


def _build_app() -> FastAPI:
    test_app = FastAPI()
    register_exception_handlers(test_app)

    @test_app.get("/whoami")
    async def whoami(request: Request, claim: deps.Claim = Depends(deps.authenticate)):
        return {"email": claim.email, "state": request.state.email}

    return test_app


def test_missing_header_is_unauthorized_without_user_lookup():
    spy = _SpyDB()

    async def override_db():
        return spy

    app.dependency_overrides[get_database] = override_db
    try:
        resp = TestClient(app).get(ADMIN_DASHBOARD)
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 401
    assert resp.json() == {"message": "unauthorized access"}
    assert spy.users.reads == 0


@pytest.mark.parametrize(
    "header",
    [
        "Token abc",
        "Bearer",
        "Bearer not-a-jwt",
        "Bearer " + create_access_token({"email": ADMIN}, expires_delta=timedelta(minutes=-5)),
        "Bearer " + create_access_token({"sub": "no-email-claim"}),
    ],
)
def test_bad_credentials_are_unauthorized(client, staff, header):
    resp = client.get(ADMIN_DASHBOARD, headers={"Authorization": header})
    assert resp.status_code == 401
    assert resp.json() == {"message": "unauthorized access"}


def test_bearer_scheme_is_case_insensitive(client, staff):
    token = auth_headers(ADMIN)["Authorization"].split(" ", 1)[1]
    resp = client.get(ADMIN_DASHBOARD, headers={"Authorization": f"bearer {token}"})
    assert resp.status_code == 200


def test_basic_scheme_is_unauthorized_without_user_lookup():
    spy = _SpyDB()

    async def override_db():
        return spy

    app.dependency_overrides[get_database] = override_db
    try:
        resp = TestClient(app).get(ADMIN_DASHBOARD, headers={"Authorization": "Basic YWRtaW46cHc="})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 401
    assert resp.json() == {"message": "unauthorized access"}
    assert spy.users.reads == 0


def test_verify_token_returns_claims_with_email():
    payload = verify_token(create_access_token({"email": f" {BORROWER} ", "sub": "abc"}))
    assert payload["email"] == BORROWER
    assert payload["sub"] == "abc"


@pytest.mark.parametrize("claims", [{"sub": "x"}, {"email": ""}, {"email": "   "}, {"email": 42}])
def test_verify_token_requires_email_claim(claims):
    assert verify_token(create_access_token(claims)) is None


def test_verify_token_rejects_empty_token():
    assert verify_token("") is None


def test_forged_signature_is_unauthorized(client, staff):
    from jose import jwt

    forged = jwt.encode({"email": ADMIN}, "some-other-secret", algorithm="HS256")
    resp = client.get(ADMIN_DASHBOARD, headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


def test_authenticate_attaches_email_to_request_state():
    client = TestClient(_build_app())
    resp = client.get("/whoami", headers=auth_headers(BORROWER))
    assert resp.status_code == 200
    assert resp.json() == {"email": BORROWER, "state": BORROWER}


def test_unknown_user_is_forbidden(client, staff):
    resp = client.get(ADMIN_DASHBOARD, headers=auth_headers("stranger@lendhub.io"))
    assert resp.status_code == 403
    assert resp.json() == {"message": "forbidden access"}


def test_wrong_role_is_forbidden(client, staff):
    assert client.get(ADMIN_DASHBOARD, headers=auth_headers(MANAGER)).status_code == 403
    assert client.get(ADMIN_DASHBOARD, headers=auth_headers(BORROWER)).status_code == 403
    assert client.get(MANAGER_DASHBOARD, headers=auth_headers(ADMIN)).status_code == 403


def test_allowed_roles_pass(client, staff):
    assert client.get(ADMIN_DASHBOARD, headers=auth_headers(ADMIN)).status_code == 200
    assert client.get(MANAGER_DASHBOARD, headers=auth_headers(MANAGER)).status_code == 200


def test_role_change_applies_to_the_next_request(client, db):
    seed(db, "users", make_user("flip@lendhub.io", "admin"))
    headers = auth_headers("flip@lendhub.io")

    assert client.get(ADMIN_DASHBOARD, headers=headers).status_code == 200

    import asyncio
    asyncio.run(db.users.update_one({"email": "flip@lendhub.io"}, {"$set": {"role": "user"}}))

    assert client.get(ADMIN_DASHBOARD, headers=headers).status_code == 403


def test_suspended_manager_is_forbidden(client, db):
    seed(db, "users", make_user("gone@lendhub.io", "suspended"))
    resp = client.get(MANAGER_DASHBOARD, headers=auth_headers("gone@lendhub.io"))
    assert resp.status_code == 403


def test_require_role_needs_a_role():
    with pytest.raises(ValueError):
        deps.require_role()


@pytest.mark.asyncio
async def test_check_role_returns_user_document(mongo):
    await mongo.users.insert_one(make_user(MANAGER, "manager"))

    user = await deps.check_role(mongo, MANAGER, {Role.ADMIN, Role.MANAGER})
    assert user["email"] == MANAGER
    assert "_id" not in user


@pytest.mark.asyncio
async def test_check_role_rejects_roles_outside_the_set(mongo):
    from fastapi import HTTPException

    await mongo.users.insert_one(make_user(MANAGER, "manager"))

    with pytest.raises(HTTPException) as exc:
        await deps.check_role(mongo, MANAGER, {Role.ADMIN})
    assert exc.value.status_code == 403
    assert exc.value.detail == "forbidden access"
