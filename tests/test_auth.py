import pytest

from voting_app.extensions import db
from voting_app.models.user import User, Role
from voting_app.services.tokens import validate_token

PASSWORD = "StrongPass123"


def signup_payload(**overrides):
    payload = {
        "name": "Asha Rao",
        "age": 34,
        "email": "asha@example.com",
        "mobile": "9876543210",
        "password": "StrongPass123",
        "national_id": "123412341234",
        "address": "12 Park Street",
    }
    payload.update(overrides)
    return payload


def test_signup_creates_voter(client):
    resp = client.post("/api/auth/signup", json=signup_payload())
    assert resp.status_code == 201

    user = resp.get_json()["user"]
    assert user["role"] == "voter"
    assert user["is_voted"] is False
    assert user["national_id_last4"] == "1234"
    assert "password" not in user
    assert "password_hash" not in user
    assert "national_id" not in user


def test_signup_ignores_submitted_role(client):
    resp = client.post("/api/auth/signup", json=signup_payload(role="admin"))
    assert resp.status_code == 201
    assert User.find_by_email("asha@example.com").role is Role.VOTER


def test_signup_stores_only_a_hash(client):
    client.post("/api/auth/signup", json=signup_payload())
    user = User.find_by_email("asha@example.com", with_password=True)
    assert user.password_hash != "StrongPass123"
    assert user.check_password("StrongPass123")


@pytest.mark.parametrize("field", ["email", "mobile", "national_id"])
def test_signup_duplicate_identity(client, field):
    client.post("/api/auth/signup", json=signup_payload())
    fresh = signup_payload(email="other@example.com", mobile="9123456780", national_id="999988887777")
    fresh[field] = signup_payload()[field]

    resp = client.post("/api/auth/signup", json=fresh)
    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "DUPLICATE_REGISTRATION"


def test_signup_missing_field(client):
    payload = signup_payload()
    del payload["address"]

    resp = client.post("/api/auth/signup", json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "address" in body["error"]["details"]


def test_login_returns_token_and_cookie(client, voter):
    resp = client.post("/api/auth/login", json={"email": voter.email, "password": PASSWORD})
    assert resp.status_code == 200

    body = resp.get_json()
    identity = validate_token(body["access_token"])
    assert identity.id == voter.id
    assert identity.role is Role.VOTER

    cookie = resp.headers.get("Set-Cookie")
    assert cookie.startswith("token=")
    assert "HttpOnly" in cookie


def test_login_wrong_password(client, voter):
    resp = client.post("/api/auth/login", json={"email": voter.email, "password": "WrongPass999"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_login_unknown_email_same_error(client):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_blocked_user_gets_no_token(client, make_user):
    user = make_user(is_blocked=True)
    resp = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})

    assert resp.status_code == 403
    body = resp.get_json()
    assert body["error"]["code"] == "ACCOUNT_BLOCKED"
    assert "access_token" not in body
    assert resp.headers.get("Set-Cookie") is None


def test_admin_login_rejects_voters(client, voter):
    resp = client.post("/api/admin/login", json={"email": voter.email, "password": PASSWORD})
    assert resp.status_code == 401


def test_admin_login(client, admin):
    resp = client.post("/api/admin/login", json={"email": admin.email, "password": PASSWORD})
    assert resp.status_code == 200
    assert validate_token(resp.get_json()["access_token"]).role is Role.ADMIN


def test_logout_clears_cookie_but_token_stays_valid(client, voter_headers):
    resp = client.post("/api/auth/logout", headers=voter_headers)
    assert resp.status_code == 200
    assert "token=;" in resp.headers.get("Set-Cookie")

    # Stateless tokens cannot be revoked by default
    assert client.get("/api/users/me", headers=voter_headers).status_code == 200


def test_logout_revokes_when_enabled(app, client, voter_headers):
    app.config["JWT_REVOCATION_ENABLED"] = True

    assert client.post("/api/auth/logout", headers=voter_headers).status_code == 200
    resp = client.get("/api/users/me", headers=voter_headers)
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "UNAUTHENTICATED"


def test_profile_update_only_touches_editable_fields(client, voter, voter_headers):
    resp = client.patch(
        "/api/users/me",
        json={"name": "New Name", "address": "1 New Road", "email": "hijack@example.com", "role": "admin"},
        headers=voter_headers,
    )
    assert resp.status_code == 200

    user = db.session.get(User, voter.id)
    assert user.name == "New Name"
    assert user.address == "1 New Road"
    assert user.email != "hijack@example.com"
    assert user.role is Role.VOTER


def test_profile_update_needs_a_valid_field(client, voter_headers):
    resp = client.patch("/api/users/me", json={"email": "x@example.com"}, headers=voter_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_profile_update_mobile_collision(client, make_user, voter, voter_headers):
    other = make_user()
    resp = client.patch("/api/users/me", json={"mobile": other.mobile}, headers=voter_headers)
    assert resp.status_code == 409


@pytest.mark.parametrize("password", ["A" * 100, "é" * 40])
def test_signup_rejects_password_over_72_bytes(client, password):
    resp = client.post("/api/auth/signup", json=signup_payload(password=password))
    assert resp.status_code == 400

    body = resp.get_json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "password" in body["error"]["details"]
    assert User.find_by_email("asha@example.com") is None


def test_signup_accepts_exactly_72_bytes(client):
    resp = client.post("/api/auth/signup", json=signup_payload(password="A" * 72))
    assert resp.status_code == 201


def test_login_with_overlong_password_is_bad_credentials(client, voter):
    resp = client.post("/api/auth/login", json={"email": voter.email, "password": "B" * 100})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_verify_password_refuses_overlong_input(app):
    from voting_app.utils.security import hash_password, verify_password

    stored = hash_password("A" * 72)
    assert verify_password("A" * 72, stored) is True
    assert verify_password("A" * 73, stored) is False
