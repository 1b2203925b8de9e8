import pytest

from voting_app import create_app
from voting_app.config import TestConfig
from voting_app.extensions import db
from voting_app.models.candidate import Candidate
from voting_app.models.user import User, Role
from voting_app.services.tokens import issue_token

PASSWORD = "StrongPass123"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=Role.VOTER, is_blocked=False, is_voted=False, email=None):
        counter["n"] += 1
        n = counter["n"]
        user = User.create(
            raw_password=PASSWORD,
            name=f"User {n}",
            age=30,
            email=email or f"user{n}@example.com",
            mobile=f"90000000{n:02d}",
            national_id=f"1234567800{n:02d}",
            address="12 Park Street",
            role=role,
            is_blocked=is_blocked,
            is_voted=is_voted,
        )
        db.session.commit()
        return user

    return _make


@pytest.fixture
def voter(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role=Role.ADMIN, email="admin@example.com")


@pytest.fixture
def make_candidate(app):
    def _make(name="Candidate", party="Independent", age=45):
        candidate = Candidate.create(name=name, party=party, age=age)
        db.session.commit()
        return candidate

    return _make


@pytest.fixture
def headers_for(app):
    def _headers(user, **kwargs):
        return {"Authorization": f"Bearer {issue_token(user, **kwargs)}"}

    return _headers


@pytest.fixture
def voter_headers(voter, headers_for):
    return headers_for(voter)


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)
