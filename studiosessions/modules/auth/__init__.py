"""
Authentication Module - Black Box Interface

Purpose: Validate bearer tokens and API keys before any session logic runs
Interface: AuthFactory.build(), AuthenticationService.authenticate()
Hidden: Token formats, key storage, validation logic

This module can be completely replaced with any other auth implementation
(OAuth, session cookies, external service) without affecting other modules.
"""

from .auth import AuthModule
from .factory import AuthFactory
from .service import AuthenticationService, AuthResult, DefaultAuthenticationService

__all__ = [
    "AuthFactory",
    "AuthModule",
    "AuthResult",
    "AuthenticationService",
    "DefaultAuthenticationService",
]
