"""
JWT Token Validator implementing TokenValidator interface.

Validates the bearer tokens issued by the booking platform's login flow
(shared-secret HS256 by default).
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

import jwt

from .interfaces import TokenValidator
from ...config.provider import JWTConfig

logger = logging.getLogger(__name__)


class JWTValidator(TokenValidator):
    """
    Validates shared-secret JWT bearer tokens.

    This class is a black box that:
    - Verifies token signatures and expiry
    - Verifies issuer/audience claims when configured
    - Caches validation results until expiry
    """

    def __init__(self, config: JWTConfig):
        """
        Initialize validator with injected config.

        Args:
            config: JWT configuration object
        """
        self.config = config
        self.cache: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self.cache_ttl = 300  # 5 minutes

    async def validate_jwt_async(self, token: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Validate a JWT token.

        Args:
            token: JWT token string (with or without Bearer prefix)

        Returns:
            Tuple of (is_valid, claims_dict or None)
        """
        if token.startswith("Bearer "):
            token = token[7:]

        if not token or not self.config.is_configured:
            return False, None

        now = time.time()
        cached = self.cache.get(token)
        if cached:
            claims, cached_until = cached
            if now < cached_until:
                return True, claims
            del self.cache[token]

        options = {"require": ["exp"]}
        if not self.config.audience:
            options["verify_aud"] = False

        try:
            claims = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                leeway=self.config.leeway_seconds,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired bearer token")
            return False, None
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected invalid bearer token: {e}")
            return False, None

        # Never cache past the token's own expiry
        cached_until = min(now + self.cache_ttl, float(claims["exp"]))
        self._purge_expired(now)
        self.cache[token] = (claims, cached_until)
        return True, claims

    def _purge_expired(self, now: float) -> None:
        """Drop entries for tokens that were never presented again."""
        expired = [token for token, (_, until) in self.cache.items() if until <= now]
        for token in expired:
            del self.cache[token]

    @staticmethod
    def extract_identity(claims: Dict[str, Any]) -> Optional[str]:
        """Pick the caller identity from token claims."""
        for claim in ("email", "userId", "id", "sub"):
            value = claims.get(claim)
            if value:
                return str(value)
        return None
