"""Typed auth settings read from the environment."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol


@dataclass
class JWTConfig:
    """Shared-secret bearer token settings."""
    secret: Optional[str]
    algorithm: str = "HS256"
    issuer: Optional[str] = None
    audience: Optional[str] = None
    leeway_seconds: int = 0

    @property
    def is_configured(self) -> bool:
        return bool(self.secret)


@dataclass
class AuthConfig:
    """Which credential mechanisms are on, and the raw API key entries."""
    api_keys_enabled: bool
    jwt_enabled: bool
    api_keys: List[str] = field(default_factory=list)


class ConfigProvider(Protocol):
    """Source of typed auth settings; swap in a fake for tests."""

    def get_jwt_config(self) -> JWTConfig:
        ...

    def get_auth_config(self) -> AuthConfig:
        ...


def _optional(name: str) -> Optional[str]:
    return os.getenv(name) or None


class EnvConfigProvider:
    """Reads JWT_* and API_KEYS environment variables on every call."""

    def get_jwt_config(self) -> JWTConfig:
        return JWTConfig(
            secret=_optional("JWT_SECRET"),
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            issuer=_optional("JWT_ISSUER"),
            audience=_optional("JWT_AUDIENCE"),
            leeway_seconds=int(os.getenv("JWT_LEEWAY_SECONDS", "0")),
        )

    def get_auth_config(self) -> AuthConfig:
        """
        Raises:
            ValueError: If neither API_KEYS nor JWT_SECRET is set. There is no
                unauthenticated mode.
        """
        api_keys = [entry.strip() for entry in os.getenv("API_KEYS", "").split(",") if entry.strip()]
        jwt_enabled = _optional("JWT_SECRET") is not None

        if not (api_keys or jwt_enabled):
            raise ValueError(
                "No authentication configured. "
                "Set JWT_SECRET for bearer tokens and/or API_KEYS (format: service:key,key). "
                "Example: API_KEYS=frontend:your-generated-key"
            )

        return AuthConfig(api_keys_enabled=bool(api_keys), jwt_enabled=jwt_enabled, api_keys=api_keys)
