"""
JWT utilities for Taskboard.

TokenCodec owns the signing secret, algorithm and token lifetime. It is
built from settings by get_token_codec() and handed explicitly to the
identity services and the auth gate, so nothing reads a global secret.
"""
import jwt
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from django.conf import settings


class TokenError(Exception):
    """Token is missing claims, badly signed, malformed or expired."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Signs and verifies session tokens bound to {user id, email}."""

    def __init__(self, secret: str, algorithm: str = 'HS256', lifetime: timedelta = timedelta(hours=24)):
        if not secret:
            raise ValueError("A signing secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def sign(self, user_id: UUID, email: str, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            'sub': str(user_id),
            'email': email,
            'iat': issued,
            'exp': issued + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            TokenError: on any signature, expiry, format or claim problem.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={'require': ['sub', 'exp', 'iat']},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise TokenError("Invalid token") from e

        try:
            user_id = UUID(payload['sub'])
        except (TypeError, ValueError) as e:
            raise TokenError("Invalid subject claim") from e

        email = payload.get('email')
        if not isinstance(email, str):
            raise TokenError("Invalid email claim")

        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload['iat'], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload['exp'], tz=timezone.utc),
        )


def get_token_codec() -> TokenCodec:
    """Build a codec from the current settings."""
    return TokenCodec(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        lifetime=timedelta(hours=settings.JWT_EXPIRATION_HOURS),
    )
