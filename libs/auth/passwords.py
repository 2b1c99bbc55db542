import bcrypt

from libs.common.config import get_settings


def hash_password(plain_password: str) -> str:
    """Hash a plain password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
