"""
Dual-credential authentication: bearer tokens for people, API keys for services.

The bearer token is checked first. A request carrying both credentials whose
token is rejected can still get in with a valid key.
"""

import logging
from collections import Counter
from datetime import UTC, datetime
from typing import Optional

from .audit import record_event
from .interfaces import ApiKeyVerifier, TokenValidator, Verdict
from .jwt_validator import JWTValidator

logger = logging.getLogger(__name__)

AUDIT_KEY = "auth:audit:bearer"


class DualAuthModule:
    """Combines a TokenValidator with an optional API key verifier."""

    def __init__(
        self,
        redis_client,
        key_auth: Optional[ApiKeyVerifier],
        token_validator: TokenValidator
    ):
        """
        Args:
            redis_client: Optional async Redis client for the audit trail
            key_auth: API key verifier; None when only bearer tokens are accepted
            token_validator: Bearer token validator
        """
        self.redis = redis_client
        self.key_auth = key_auth
        self.token_validator = token_validator
        self.auth_stats = Counter({"api_key": 0, "jwt": 0, "failed": 0})

    async def verify_credentials(
        self,
        api_key: Optional[str] = None,
        bearer_token: Optional[str] = None
    ) -> Verdict:
        verdict = await self._try_bearer(bearer_token) if bearer_token else None
        if verdict is None and api_key and self.key_auth:
            verdict = await self._try_api_key(api_key)

        if verdict is None:
            self.auth_stats["failed"] += 1
            return False, None, None

        self.auth_stats[verdict[2]] += 1
        return verdict

    async def _try_bearer(self, bearer_token: str) -> Optional[Verdict]:
        is_valid, claims = await self.token_validator.validate_jwt_async(bearer_token)
        if not (is_valid and claims):
            return None

        identity = JWTValidator.extract_identity(claims)
        await record_event(
            self.redis,
            AUDIT_KEY,
            "jwt_authenticated",
            {
                "user": identity,
                "sub": claims.get("sub"),
                "user_type": claims.get("userType", claims.get("user_type")),
            },
        )
        return True, identity, "jwt"

    async def _try_api_key(self, api_key: str) -> Optional[Verdict]:
        is_valid, service_identity = await self.key_auth.verify_api_key(api_key)
        if not is_valid:
            return None
        return True, service_identity, "api_key"

    async def get_auth_stats(self) -> dict:
        """Counts of accepted and rejected requests since startup."""
        return {
            "stats": dict(self.auth_stats),
            "timestamp": datetime.now(UTC).isoformat()
        }
