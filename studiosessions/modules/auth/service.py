"""
Request-level authentication facade.

The HTTP layer hands over raw header values and gets back an AuthResult.
It never learns which verifier accepted the caller.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Protocol

from .interfaces import CredentialVerifier

AuthMethod = Literal["api_key", "jwt"]

NO_CREDENTIALS = "No token provided"
BAD_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of authenticating one request."""
    ok: bool
    identity: Optional[str] = None
    method: Optional[AuthMethod] = None
    error: Optional[str] = None

    @classmethod
    def accepted(cls, identity: Optional[str], method: AuthMethod) -> "AuthResult":
        return cls(ok=True, identity=identity, method=method)

    @classmethod
    def rejected(cls, reason: str) -> "AuthResult":
        return cls(ok=False, error=reason)


class AuthenticationService(Protocol):
    """What the API layer depends on."""

    async def authenticate(
        self,
        api_key: Optional[str],
        authorization: Optional[str]
    ) -> AuthResult:
        ...


def bearer_from_header(authorization: Optional[str]) -> Optional[str]:
    """Return the Authorization value only when it uses the Bearer scheme."""
    if authorization and authorization.startswith("Bearer "):
        return authorization
    return None


class DefaultAuthenticationService:
    """Authenticates requests against a single CredentialVerifier."""

    def __init__(self, verifier: CredentialVerifier):
        self.verifier = verifier

    async def authenticate(
        self,
        api_key: Optional[str],
        authorization: Optional[str]
    ) -> AuthResult:
        """
        Authenticate a request from its X-API-Key and Authorization headers.

        Other Authorization schemes (Basic, Digest) count as no credentials.
        """
        bearer_token = bearer_from_header(authorization)
        if not (api_key or bearer_token):
            return AuthResult.rejected(NO_CREDENTIALS)

        ok, identity, method = await self.verifier.verify_credentials(
            api_key=api_key,
            bearer_token=bearer_token
        )
        if not ok:
            return AuthResult.rejected(BAD_CREDENTIALS)
        return AuthResult.accepted(identity, method)
