"""Contracts between the pieces of the auth stack."""
from typing import Any, Dict, Optional, Protocol, Tuple

Claims = Dict[str, Any]

# (authenticated, identity, method)
Verdict = Tuple[bool, Optional[str], Optional[str]]


class TokenValidator(Protocol):
    """Checks a bearer token and hands back its claims."""

    async def validate_jwt_async(self, token: str) -> Tuple[bool, Optional[Claims]]:
        ...


class ApiKeyVerifier(Protocol):
    """Checks a static API key and hands back the owning service, if named."""

    async def verify_api_key(self, api_key: str) -> Tuple[bool, Optional[str]]:
        ...


class CredentialVerifier(Protocol):
    """
    Judges whatever credentials a request carried.

    Returns:
        Verdict of (authenticated, identity, method); method is "api_key"
        or "jwt" on success and None otherwise.
    """

    async def verify_credentials(
        self,
        api_key: Optional[str] = None,
        bearer_token: Optional[str] = None
    ) -> Verdict:
        ...
