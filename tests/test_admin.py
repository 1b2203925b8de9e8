import uuid
from datetime import datetime, timedelta

import pytest

from voting_app.cli import seed_admin_command, purge_revoked_tokens_command
from voting_app.extensions import db
from voting_app.models.candidate import Candidate
from voting_app.models.token_blocklist import TokenBlocklist
from voting_app.models.user import User, Role
from voting_app.models.vote import Vote
from voting_app.services import voting

PASSWORD = "StrongPass123"


def test_candidate_crud(client, admin_headers):
    created = client.post(
        "/api/admin/candidates",
        json={"name": "R. Mehta", "party": "Independent", "age": 45, "vote_count": 99},
        headers=admin_headers,
    )
    assert created.status_code == 201
    candidate = created.get_json()["candidate"]
    assert candidate["vote_count"] == 0

    updated = client.put(
        f"/api/admin/candidates/{candidate['id']}",
        json={"party": "Green"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.get_json()["candidate"]["party"] == "Green"
    assert updated.get_json()["candidate"]["name"] == "R. Mehta"

    listed = client.get("/api/admin/candidates", headers=admin_headers).get_json()["candidates"]
    assert [c["id"] for c in listed] == [candidate["id"]]

    deleted = client.delete(f"/api/admin/candidates/{candidate['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert Candidate.count_all() == 0


def test_create_candidate_requires_all_fields(client, admin_headers):
    resp = client.post("/api/admin/candidates", json={"name": "No Party"}, headers=admin_headers)
    assert resp.status_code == 400
    assert set(resp.get_json()["error"]["details"]) == {"party", "age"}


def test_edit_unknown_candidate(client, admin_headers):
    resp = client.put(f"/api/admin/candidates/{uuid.uuid4()}", json={"name": "X"}, headers=admin_headers)
    assert resp.status_code == 404


def test_delete_candidate_removes_its_ledger(client, admin_headers, voter, make_candidate):
    candidate = make_candidate()
    voting.cast_vote(voter.id, candidate.id)

    resp = client.delete(f"/api/admin/candidates/{candidate.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert Vote.query.count() == 0
    assert db.session.get(User, voter.id).is_voted is True


def test_list_users_masks_national_id(client, admin_headers, voter):
    resp = client.get("/api/admin/users", headers=admin_headers)
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["count"] == 2
    for user in body["users"]:
        assert "national_id" not in user
        assert len(user["national_id_last4"]) == 4


def test_block_and_unblock(client, admin_headers, voter):
    blocked = client.post(f"/api/admin/users/{voter.id}/block", headers=admin_headers)
    assert blocked.status_code == 200
    assert blocked.get_json()["user"]["is_blocked"] is True

    login = client.post("/api/auth/login", json={"email": voter.email, "password": PASSWORD})
    assert login.status_code == 403

    unblocked = client.post(f"/api/admin/users/{voter.id}/unblock", headers=admin_headers)
    assert unblocked.get_json()["user"]["is_blocked"] is False

    login = client.post("/api/auth/login", json={"email": voter.email, "password": PASSWORD})
    assert login.status_code == 200


def test_block_unknown_user(client, admin_headers):
    resp = client.post(f"/api/admin/users/{uuid.uuid4()}/block", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "USER_NOT_FOUND"


def test_vote_logs(client, admin_headers, voter, make_candidate):
    candidate = make_candidate(name="Ledgered")
    make_candidate(name="Empty")
    voting.cast_vote(voter.id, candidate.id)

    resp = client.get("/api/admin/vote-logs", headers=admin_headers)
    assert resp.status_code == 200

    by_name = {c["name"]: c for c in resp.get_json()["candidates"]}
    assert by_name["Empty"]["votes"] == []
    entries = by_name["Ledgered"]["votes"]
    assert len(entries) == by_name["Ledgered"]["vote_count"] == 1
    assert entries[0]["voter"]["email"] == voter.email


def test_vote_logs_forbidden_for_voters(client, voter_headers):
    assert client.get("/api/admin/vote-logs", headers=voter_headers).status_code == 403


def test_audit_logs_filter(client, admin_headers, make_user, make_candidate):
    candidate = make_candidate()
    voting.cast_vote(make_user().id, candidate.id)

    resp = client.get("/api/admin/audit-logs?action=VOTE_CAST", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 1
    assert body["logs"][0]["details"] == {"candidate_id": str(candidate.id)}


def test_audit_logs_bad_paging(client, admin_headers):
    resp = client.get("/api/admin/audit-logs?limit=abc", headers=admin_headers)
    assert resp.status_code == 400


@pytest.mark.parametrize("query", ["limit=-1", "offset=-5"])
def test_audit_logs_negative_paging(client, admin_headers, query):
    resp = client.get(f"/api/admin/audit-logs?{query}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_seed_admin_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(seed_admin_command, ["--email", "root@example.com", "--password", "admin12345"])
    assert result.exit_code == 0
    assert "Admin created" in result.output

    admin = User.find_by_email("root@example.com", with_password=True)
    assert admin.role is Role.ADMIN
    assert admin.check_password("admin12345")

    again = runner.invoke(seed_admin_command, ["--email", "root@example.com", "--password", "other-pass"])
    assert "already exists" in again.output
    assert User.query.filter_by(role=Role.ADMIN).count() == 1


def test_seed_admin_rejects_overlong_password(app):
    result = app.test_cli_runner().invoke(
        seed_admin_command, ["--email", "root@example.com", "--password", "x" * 100]
    )
    assert result.exit_code == 2
    assert "72 bytes" in result.output
    assert User.find_by_email("root@example.com") is None


def test_purge_revoked_tokens_command(app):
    now = datetime.utcnow()
    TokenBlocklist.revoke("old-jti", expires_at=now - timedelta(hours=1))
    TokenBlocklist.revoke("live-jti", expires_at=now + timedelta(hours=1))
    db.session.commit()

    result = app.test_cli_runner().invoke(purge_revoked_tokens_command)
    assert result.exit_code == 0
    assert TokenBlocklist.is_blocklisted("old-jti") is False
    assert TokenBlocklist.is_blocklisted("live-jti") is True
