"""
Password Hashing (bcrypt)
"""
import bcrypt

from scopegrid.core.exceptions import ValidationError

BCRYPT_MAX_BYTES = 72


def hash_password(raw_password: str) -> str:
    password_bytes = raw_password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password exceeds the bcrypt limit of {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, password_hash: str) -> bool:
    try:
        password_bytes = raw_password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            return False
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        return False
