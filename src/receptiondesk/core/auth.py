"""
Admin API key authentication.

Administrative operations (seeding doctors, relinking receptionists) are
guarded by API keys rather than receptionist sessions. Keys are configured
as comma-separated ``key:user`` pairs in AUTH_API_KEYS (or API_KEYS).
"""

import hmac
import logging
import os
from typing import Dict, Optional

from .config import get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for validating admin API keys"""

    def __init__(self, api_keys_str: Optional[str] = None):
        self.api_keys: Dict[str, str] = {}
        if api_keys_str is None:
            api_keys_str = get_settings().auth.api_keys or os.getenv("API_KEYS", "")
        self._parse_api_keys(api_keys_str)
        if self.api_keys:
            logger.info("✅ Loaded %d admin API key(s)", len(self.api_keys))
        else:
            logger.warning("⚠️  No API keys configured. Admin endpoints will reject all requests.")

    def _parse_api_keys(self, api_keys_str: str) -> None:
        """
        Parse API keys string.
        Format: "key1:user1,key2:user2" (comma-separated key:user pairs)
        """
        if not api_keys_str or not api_keys_str.strip():
            return

        for pair in api_keys_str.split(","):
            pair = pair.strip()
            if not pair:
                continue

            if ":" in pair:
                key, user_id = (part.strip() for part in pair.split(":", 1))
                if key and user_id:
                    self.api_keys[key] = user_id
            else:
                # If no colon, use the key itself as user identifier
                self.api_keys[pair] = pair

    def validate_api_key(self, api_key: Optional[str]) -> str:
        """
        Validate API key and return user ID.

        Raises:
            AuthenticationError: If API key is invalid or missing
        """
        if not api_key:
            raise AuthenticationError("Authentication required. Provide X-API-Key header.")

        # Remove "Bearer " prefix if present
        if api_key.startswith("Bearer "):
            api_key = api_key[7:].strip()

        for key, user_id in self.api_keys.items():
            if hmac.compare_digest(key.encode("utf-8"), api_key.encode("utf-8")):
                logger.debug(f"✅ API key validated for user: {user_id}")
                return user_id

        logger.warning(f"❌ Invalid API key attempted: {api_key[:4]}...")
        raise AuthenticationError("Invalid API key")


# Global instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get global authentication service instance (singleton)"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


def reset_auth_service() -> None:
    global _auth_service
    _auth_service = None
