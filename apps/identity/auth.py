"""
Auth gate for protected endpoints.

SessionTokenAuth is a django-ninja auth callable, so it runs before the
request body is parsed or sanitized. It reads the token from the session
(falling back to an ``Authorization: Bearer`` header) and either attaches
an AuthIdentity as ``request.auth`` or rejects the request:

- no token                    -> 401 "Access token required"
- bad signature / expired     -> 403 "Invalid or expired token"
"""
import logging
from typing import Optional

from django.http import HttpRequest
from ninja.security.base import AuthBase

from apps.core.errors import AuthError
from .dtos import AuthIdentity
from .jwt_auth import TokenCodec, TokenError, get_token_codec

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'token'
SESSION_USER_KEY = 'user_id'


def get_request_token(request: HttpRequest) -> Optional[str]:
    """Token from the session carrier, else from a bearer header."""
    session = getattr(request, 'session', None)
    if session is not None:
        token = session.get(SESSION_TOKEN_KEY)
        if token:
            return token

    header = request.headers.get('Authorization', '')
    scheme, _, credentials = header.partition(' ')
    if scheme.lower() == 'bearer' and credentials.strip():
        return credentials.strip()
    return None


class SessionTokenAuth(AuthBase):
    openapi_type = "http"
    openapi_scheme = "bearer"

    def __init__(self, tokens: Optional[TokenCodec] = None):
        self._tokens = tokens
        super().__init__()

    @property
    def tokens(self) -> TokenCodec:
        return self._tokens or get_token_codec()

    def __call__(self, request: HttpRequest) -> AuthIdentity:
        token = get_request_token(request)
        if not token:
            raise AuthError("Access token required")

        try:
            claims = self.tokens.verify(token)
        except TokenError as e:
            logger.warning(f"Rejected token on {request.path}: {e}")
            raise AuthError("Invalid or expired token", status_code=403)

        return AuthIdentity(user_id=claims.user_id, email=claims.email)
