"""
Composition root for the auth stack.

Reads the typed auth and JWT configs, then wires API key and bearer token
verification behind the DefaultAuthenticationService facade.
"""

import logging
from typing import Any, Optional

from ...config.provider import ConfigProvider
from .auth import AuthModule
from .dual import DualAuthModule
from .jwt_validator import JWTValidator
from .service import AuthenticationService, DefaultAuthenticationService

logger = logging.getLogger(__name__)


class AuthFactory:
    """Builds the authentication service from configuration."""

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        redis_client: Optional[Any] = None
    ) -> AuthenticationService:
        """
        Args:
            config_provider: Source of AuthConfig and JWTConfig
            redis_client: Optional async Redis client for the audit trail

        Raises:
            ValueError: If neither API keys nor a JWT secret is configured
        """
        auth_config = config_provider.get_auth_config()
        key_auth = None
        if auth_config.api_keys_enabled:
            key_auth = AuthModule(redis_client, api_keys=auth_config.api_keys)

        jwt_config = config_provider.get_jwt_config()
        if not (auth_config.jwt_enabled and jwt_config.is_configured):
            logger.info(f"Auth: {len(auth_config.api_keys)} API key(s), bearer tokens disabled")
            return DefaultAuthenticationService(key_auth)

        fallback = "with API key fallback" if key_auth else "without API keys"
        logger.info(f"Auth: {jwt_config.algorithm} bearer tokens {fallback}")
        return DefaultAuthenticationService(
            DualAuthModule(redis_client, key_auth, JWTValidator(jwt_config))
        )
