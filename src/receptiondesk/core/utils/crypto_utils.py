"""
Password hashing helpers for receptionist credentials.

Stored hashes use the format ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``.
Receptionist accounts created before hashing was introduced still hold the
password itself in ``passwordHash``; those are accepted by ``verify_password``
and re-hashed on the next successful login.
"""

import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger(__name__)

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260000


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS, salt: str = None) -> str:
    """Hash password with salted PBKDF2-SHA256."""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{ALGORITHM}${iterations}${salt}${digest.hex()}"


def is_legacy_password(stored: str) -> bool:
    """True when the stored credential predates hashing."""
    return not (stored or "").startswith(f"{ALGORITHM}$")


def verify_password(password: str, stored: str) -> bool:
    """Verify password against a stored hash (or a legacy plaintext credential)."""
    if not password or not stored:
        return False

    if is_legacy_password(stored):
        # Legacy shim: remove once no receptionist document reports a legacy credential
        logger.warning("⚠️  Verifying legacy plaintext credential; it will be re-hashed on success")
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))

    try:
        _, iterations, salt, expected = stored.split("$", 3)
        iterations_int = int(iterations)
    except ValueError:
        logger.error("Malformed password hash encountered")
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations_int)
    return hmac.compare_digest(digest.hex(), expected)
