import enum
import uuid
from datetime import datetime
from sqlalchemy import Uuid, func
from sqlalchemy.orm import deferred, undefer
from ..extensions import db
from ..utils.security import hash_password, verify_password


class Role(str, enum.Enum):
    VOTER = "voter"
    ADMIN = "admin"


class User(db.Model):
    __tablename__ = "users"

    # Only these can be changed by the user themselves
    EDITABLE_FIELDS = ("name", "age", "mobile", "address")

    id = db.Column(Uuid(), primary_key=True, default=uuid.uuid4)

    name = db.Column(db.String(120), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    mobile = db.Column(db.String(20), nullable=False, unique=True, index=True)
    national_id = db.Column(db.String(20), nullable=False, unique=True, index=True)
    address = db.Column(db.String(255), nullable=False)

    # Not loaded unless asked for explicitly (login path)
    password_hash = deferred(db.Column(db.String(255), nullable=False))

    role = db.Column(
        db.Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.VOTER,
    )
    is_blocked = db.Column(db.Boolean, nullable=False, default=False)
    is_voted = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def set_password(self, raw_password: str) -> None:
        self.password_hash = hash_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return verify_password(raw_password, self.password_hash)

    @staticmethod
    def find_by_email(email: str, with_password: bool = False, role: Role | None = None):
        q = User.query.filter_by(email=email)
        if role is not None:
            q = q.filter_by(role=role)
        if with_password:
            q = q.options(undefer(User.password_hash))
        return q.first()

    @staticmethod
    def find_by_id(user_id):
        return db.session.get(User, user_id)

    @staticmethod
    def find_conflict(email: str, mobile: str, national_id: str):
        return User.query.filter(
            db.or_(
                User.email == email,
                User.mobile == mobile,
                User.national_id == national_id,
            )
        ).first()

    @staticmethod
    def create(raw_password: str, **fields) -> "User":
        user = User(**fields)
        user.set_password(raw_password)
        db.session.add(user)
        return user

    @staticmethod
    def count_all() -> int:
        return db.session.query(func.count(User.id)).scalar() or 0

    def update_fields(self, **fields) -> list[str]:
        changed = []
        for name in self.EDITABLE_FIELDS:
            if name in fields:
                setattr(self, name, fields[name])
                changed.append(name)
        return changed
