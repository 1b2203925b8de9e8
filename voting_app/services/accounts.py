"""Signup, login, profile and block/unblock against the users table."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import (
    AccountBlocked,
    DuplicateRegistration,
    InvalidCredentials,
    UserNotFound,
    ValidationError,
)
from ..models.user import User, Role
from ..utils.audit import audit_log, safe_audit
from ..utils.security import MAX_PASSWORD_BYTES, password_fits


def register_voter(data: dict) -> User:
    """
    Create a voter from already validated signup data.
    The role is always VOTER, whatever the client asked for.
    """
    email = data["email"].lower().strip()
    mobile = data["mobile"].strip()
    national_id = data["national_id"].strip()

    if User.find_conflict(email, mobile, national_id):
        safe_audit(
            action="USER_SIGNUP_FAILED_DUPLICATE",
            entity_type="AUTH",
            details={"email": email},
        )
        raise DuplicateRegistration()

    try:
        user = User.create(
            raw_password=data["password"],
            name=data["name"].strip(),
            age=data["age"],
            email=email,
            mobile=mobile,
            national_id=national_id,
            address=data["address"].strip(),
            role=Role.VOTER,
        )
        db.session.flush()  # ensure user.id exists for audit

        audit_log(
            action="USER_SIGNED_UP",
            entity_type="USER",
            entity_id=user.id,
            details={"email": user.email, "role": user.role.value},
        )
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same identity
        db.session.rollback()
        raise DuplicateRegistration()

    current_app.logger.info("Voter registered user_id=%s", user.id)
    return user


def authenticate(email: str, password: str, role: Role | None = None) -> User:
    """
    Check credentials. Blocked users are rejected before any token exists.
    With ``role`` set, only users holding that role can log in here.
    """
    email = (email or "").lower().strip()
    user = User.find_by_email(email, with_password=True, role=role)

    # Don't leak which part failed
    if not user or not user.check_password(password):
        safe_audit(
            action="LOGIN_FAILED_INVALID_CREDENTIALS",
            entity_type="AUTH",
            details={"email": email, "role": role.value if role else None},
        )
        raise InvalidCredentials()

    if user.is_blocked:
        safe_audit(
            action="LOGIN_FAILED_BLOCKED",
            entity_type="AUTH",
            entity_id=user.id,
            details={"email": user.email},
        )
        raise AccountBlocked()

    audit_log(
        action="LOGIN_SUCCESS",
        entity_type="AUTH",
        entity_id=user.id,
        details={"email": user.email, "role": user.role.value},
    )
    db.session.commit()
    return user


def get_user(user_id) -> User:
    user = User.find_by_id(user_id)
    if not user:
        raise UserNotFound()
    return user


def update_profile(user_id, fields: dict) -> User:
    user = get_user(user_id)

    changed = user.update_fields(**fields)
    if not changed:
        raise ValidationError("No valid fields to update")

    try:
        audit_log(
            action="PROFILE_UPDATED",
            entity_type="USER",
            entity_id=user.id,
            details={"updated_fields": changed},
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateRegistration("Mobile number already in use")
    return user


def list_users():
    return User.query.order_by(User.created_at.asc()).all()


def set_blocked(user_id, blocked: bool) -> User:
    """
    Tokens already issued to the user stay valid until they expire;
    blocking only stops new logins.
    """
    user = get_user(user_id)
    user.is_blocked = blocked

    audit_log(
        action="USER_BLOCKED" if blocked else "USER_UNBLOCKED",
        entity_type="USER",
        entity_id=user.id,
        details={"email": user.email},
    )
    db.session.commit()
    current_app.logger.info("User %s %s", user.id, "blocked" if blocked else "unblocked")
    return user


def create_admin(name: str, email: str, password: str, mobile: str, national_id: str,
                 address: str, age: int = 30) -> tuple[User, bool]:
    """Out-of-band admin seeding. Returns (user, created)."""
    if len(password) < 8 or not password_fits(password):
        raise ValidationError(
            f"Admin password must be 8 characters to {MAX_PASSWORD_BYTES} bytes long",
            details={"password": ["Invalid length"]},
        )

    email = email.lower().strip()
    existing = User.find_by_email(email)
    if existing:
        return existing, False

    user = User.create(
        raw_password=password,
        name=name,
        age=age,
        email=email,
        mobile=mobile,
        national_id=national_id,
        address=address,
        role=Role.ADMIN,
    )
    db.session.flush()
    audit_log(
        action="ADMIN_SEEDED",
        entity_type="USER",
        entity_id=user.id,
        details={"email": email},
    )
    db.session.commit()
    return user, True
