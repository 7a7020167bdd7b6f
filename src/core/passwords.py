"""
Password hashing for local accounts (bcrypt via passlib).
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Check a plaintext password against a stored hash. Unreadable hashes never match."""
    if not stored:
        return False
    try:
        return pwd_context.verify(password, stored)
    except ValueError:
        return False
