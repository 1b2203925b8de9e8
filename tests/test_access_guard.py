from datetime import timedelta

from voting_app.models.candidate import Candidate
from voting_app.models.user import Role
from voting_app.services.tokens import issue_token
from voting_app.utils.rbac import roles_required


def _error_code(resp):
    return resp.get_json()["error"]["code"]


def test_missing_token_is_unauthenticated(client):
    resp = client.get("/api/users/me")
    assert resp.status_code == 401
    assert _error_code(resp) == "UNAUTHENTICATED"


def test_expired_token_gets_same_error_as_missing(client, voter, headers_for):
    missing = client.get("/api/users/me")
    expired = client.get("/api/users/me", headers=headers_for(voter, expires_delta=timedelta(seconds=-10)))

    assert expired.status_code == missing.status_code == 401
    assert expired.get_json()["error"] == missing.get_json()["error"]


def test_garbage_token_is_unauthenticated(client):
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 401
    assert _error_code(resp) == "UNAUTHENTICATED"


def test_bearer_header_is_accepted(client, voter, voter_headers):
    resp = client.get("/api/users/me", headers=voter_headers)
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["id"] == str(voter.id)


def test_token_cookie_is_accepted(client, voter):
    client.set_cookie("token", issue_token(voter))
    resp = client.get("/api/users/me")
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["email"] == voter.email


def test_header_wins_over_cookie(client, voter, admin, voter_headers):
    client.set_cookie("token", issue_token(admin))
    resp = client.get("/api/admin/dashboard", headers=voter_headers)
    assert resp.status_code == 403


def test_invalid_header_is_not_rescued_by_cookie(client, voter):
    client.set_cookie("token", issue_token(voter))
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer broken"})
    assert resp.status_code == 401


def test_voter_on_admin_route_is_forbidden_without_side_effect(client, voter_headers):
    resp = client.post(
        "/api/admin/candidates",
        json={"name": "Sneaky", "party": "None", "age": 40},
        headers=voter_headers,
    )
    assert resp.status_code == 403
    assert _error_code(resp) == "FORBIDDEN"
    assert Candidate.count_all() == 0


def test_voter_cannot_block_users(client, make_user, voter_headers):
    target = make_user()
    resp = client.post(f"/api/admin/users/{target.id}/block", headers=voter_headers)
    assert resp.status_code == 403
    assert target.is_blocked is False


def test_roles_required_without_auth_fails_closed(app, client):
    @app.get("/_unguarded")
    @roles_required(Role.ADMIN)
    def unguarded():
        return {"ok": True}, 200

    resp = client.get("/_unguarded")
    assert resp.status_code == 401


def test_login_entry_redirects_when_authenticated(client, voter_headers):
    resp = client.get("/api/auth/login", headers=voter_headers)
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/api/users/me")


def test_login_entry_proceeds_without_token(client):
    resp = client.get("/api/auth/login")
    assert resp.status_code == 200
    assert resp.get_json()["authenticated"] is False


def test_signup_entry_proceeds_with_expired_token(client, voter, headers_for):
    resp = client.get("/api/auth/signup", headers=headers_for(voter, expires_delta=timedelta(seconds=-10)))
    assert resp.status_code == 200
    assert "national_id" in resp.get_json()["required_fields"]


def test_responses_carry_request_id(client):
    resp = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert resp.headers["X-Request-Id"] == "abc-123"
