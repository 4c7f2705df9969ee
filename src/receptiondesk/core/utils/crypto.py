"""
Crypto utilities for session handling:
- Fernet-based symmetric encryption/decryption
- Session token issue/read helpers for receptionist logins

Env vars used:
- SECURITY_SESSION_KEY: urlsafe base64-encoded 32-byte Fernet key. When unset,
  a key is derived from SECURITY_SECRET_KEY so tokens survive restarts.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import secrets
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken  # type: ignore

from ...domain.errors import InvalidSessionError
from ..config import get_settings

logger = logging.getLogger("receptiondesk")

_fernet_singleton: Optional[Fernet] = None


def _derive_key(secret: str) -> bytes:
    return base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())


def get_fernet() -> Fernet:
    global _fernet_singleton
    if _fernet_singleton is not None:
        return _fernet_singleton

    security = get_settings().security
    key = (security.session_key or "").strip()
    if key:
        try:
            _fernet_singleton = Fernet(key.encode("utf-8"))
            return _fernet_singleton
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Invalid SECURITY_SESSION_KEY provided. Deriving key from SECURITY_SECRET_KEY. Error=%s",
                str(exc),
            )

    _fernet_singleton = Fernet(_derive_key(security.secret_key))
    return _fernet_singleton


def reset_fernet() -> None:
    """Drop the cached key (settings reload, tests)."""
    global _fernet_singleton
    _fernet_singleton = None


def encrypt_text(plaintext: str) -> str:
    if plaintext is None:
        raise ValueError("encrypt_text: plaintext cannot be None")
    token = get_fernet().encrypt(plaintext.encode("utf-8"))
    return token.decode("utf-8")


def decrypt_text(token_str: str, ttl: Optional[int] = None) -> str:
    if not token_str:
        raise ValueError("decrypt_text: token cannot be empty")
    try:
        plaintext = get_fernet().decrypt(token_str.encode("utf-8"), ttl=ttl)
        return plaintext.decode("utf-8")
    except InvalidToken as exc:
        raise ValueError("Invalid or expired token") from exc


def issue_session_token(receptionist_id: str) -> str:
    """Encrypted, timestamped token naming the receptionist it was issued to."""
    payload = json.dumps({"rid": receptionist_id, "nonce": secrets.token_hex(8)})
    return encrypt_text(payload)


def read_session_token(token: str, ttl_seconds: Optional[int] = None) -> str:
    """Return the receptionist id a session token was issued to."""
    if not token:
        raise InvalidSessionError("Session token is required")
    if ttl_seconds is None:
        ttl_seconds = get_settings().security.session_ttl_seconds
    try:
        payload = json.loads(decrypt_text(token, ttl=ttl_seconds))
    except ValueError as exc:
        raise InvalidSessionError("Session is invalid or has expired") from exc

    receptionist_id = payload.get("rid") if isinstance(payload, dict) else None
    if not receptionist_id:
        raise InvalidSessionError("Session token is malformed")
    return receptionist_id
