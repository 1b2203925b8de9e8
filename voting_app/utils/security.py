import bcrypt
from flask import current_app

# bcrypt only looks at the first 72 bytes; bcrypt>=5 rejects longer input
MAX_PASSWORD_BYTES = 72


def password_fits(raw_password: str) -> bool:
    return len(raw_password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(raw_password: str) -> str:
    if not password_fits(raw_password):
        raise ValueError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")
    rounds = current_app.config.get("BCRYPT_SALT_ROUNDS", 10)
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(raw_password: str, password_hash: str) -> bool:
    if not password_hash or not password_fits(raw_password):
        return False
    return bcrypt.checkpw(raw_password.encode("utf-8"), password_hash.encode("utf-8"))


def mask_national_id(national_id: str | None) -> str | None:
    """Only the last four digits ever leave the server."""
    if not national_id:
        return None
    return national_id[-4:]
