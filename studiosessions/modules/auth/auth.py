"""
API key authentication for the Studio Sessions API.

Service-to-service callers (booking frontends, back-office jobs) present a
static key in the X-API-Key header. A configured entry is either a bare key
or "service:key", in which case the service name becomes the caller's
identity.
"""

import logging
import os
import secrets
from typing import Dict, Iterable, Optional, Tuple

from .audit import record_event
from .interfaces import Verdict

logger = logging.getLogger(__name__)

AUDIT_KEY = "auth:audit"


def parse_api_keys(entries: Iterable[str]) -> Dict[str, Optional[str]]:
    """Map each key to its service identity (None for bare keys)."""
    keys: Dict[str, Optional[str]] = {}
    for entry in entries:
        entry = entry.strip()
        if not entry:
            continue
        service, sep, key = entry.partition(":")
        if sep:
            keys[key.strip()] = service.strip()
        else:
            keys[entry] = None
    return keys


class AuthModule:
    """Validates API keys; bearer tokens are not understood here."""

    def __init__(self, redis_client=None, api_keys: Optional[Iterable[str]] = None):
        """
        Args:
            redis_client: Optional async Redis client for the audit trail
            api_keys: Key entries. Read from API_KEYS when omitted.
        """
        self.redis = redis_client
        if api_keys is None:
            api_keys = os.environ.get("API_KEYS", "").split(",")
        self.api_keys = parse_api_keys(api_keys)

    async def verify_api_key(self, api_key: str) -> Tuple[bool, Optional[str]]:
        """
        Verify an API key.

        Returns:
            Tuple of (is_valid, service_identity)
        """
        if not api_key:
            return False, None

        presented = api_key.encode("utf-8")
        # Every configured key is compared so timing does not reveal a partial match
        matches = [
            known for known in self.api_keys
            if secrets.compare_digest(presented, known.encode("utf-8"))
        ]
        if not matches:
            logger.debug("Rejected unknown API key")
            return False, None

        service_identity = self.api_keys[matches[0]]
        await record_event(
            self.redis, AUDIT_KEY, "api_key_verified", {"service_identity": service_identity}
        )
        return True, service_identity

    async def verify_credentials(
        self,
        api_key: Optional[str] = None,
        bearer_token: Optional[str] = None
    ) -> Verdict:
        """Accept a valid API key; bearer_token is ignored."""
        if not api_key:
            return False, None, None

        is_valid, service_identity = await self.verify_api_key(api_key)
        if not is_valid:
            return False, None, None
        return True, service_identity, "api_key"
