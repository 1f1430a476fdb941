"""
Services for Identity app.

Registration, login and token inspection. Every function that issues or
reads tokens takes the TokenCodec explicitly.
"""
import logging
from typing import Optional
from uuid import UUID

from django.contrib.auth import authenticate
from django.contrib.auth.signals import user_logged_in
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction

from apps.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from .dtos import AuthIdentity, AuthResult, UserDTO
from .jwt_auth import TokenCodec, TokenError
from .models import User

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 100

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_EMAIL = "Please provide a valid email address"


def to_user_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
    )


def get_user_dto(user_id) -> UserDTO | None:
    try:
        return to_user_dto(User.objects.get(id=user_id))
    except User.DoesNotExist:
        return None


def normalize_email(email: str) -> str:
    return User.objects.normalize_email(email)


def _check_email(email: str) -> str:
    normalized = normalize_email(email)
    if len(normalized) > EMAIL_MAX_LENGTH:
        raise ValidationError(INVALID_EMAIL)
    try:
        validate_email(normalized)
    except DjangoValidationError:
        raise ValidationError(INVALID_EMAIL)
    return normalized


def register_user(tokens: TokenCodec, name: Optional[str], email: Optional[str], password: Optional[str]) -> AuthResult:
    """
    Create an account and issue its first token.

    Raises:
        ValidationError: missing or malformed fields.
        ConflictError: the normalized email is already registered.
    """
    if not name or not email or not password:
        raise ValidationError(
            "All fields are required",
            extra={"required": ["name", "email", "password"]},
        )

    name = name.strip()
    if len(name) < NAME_MIN_LENGTH or len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters long"
        )

    email = _check_email(email)

    try:
        validate_password(password)
    except DjangoValidationError as e:
        raise ValidationError(" ".join(e.messages))

    if User.objects.filter(email=email).exists():
        raise ConflictError("User with this email already exists")

    try:
        # Unique index is the backstop when two registrations race past the check above
        with transaction.atomic():
            user = User.objects.create_user(email=email, name=name, password=password)
    except IntegrityError:
        raise ConflictError("User with this email already exists")

    logger.info(f"Registered user {user.id}")
    return AuthResult(user=to_user_dto(user), token=tokens.sign(user.id, user.email))


def login_user(tokens: TokenCodec, email: Optional[str], password: Optional[str], request=None) -> AuthResult:
    """
    Verify credentials and issue a fresh token.

    A missing account and a wrong password fail identically.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    email = _check_email(email)

    user = authenticate(request, email=email, password=password)
    if user is None:
        raise AuthError(INVALID_CREDENTIALS)

    user_logged_in.send(sender=user.__class__, request=request, user=user)
    return AuthResult(user=to_user_dto(user), token=tokens.sign(user.id, user.email))


def verify_token(tokens: TokenCodec, token: Optional[str]) -> Optional[AuthIdentity]:
    """
    Best-effort token check.

    Returns the identity for a usable token and None for anything else;
    it never raises.
    """
    if not token:
        return None
    try:
        claims = tokens.verify(token)
    except TokenError:
        return None
    return AuthIdentity(user_id=claims.user_id, email=claims.email)


def get_profile(user_id: UUID) -> UserDTO:
    user_dto = get_user_dto(user_id)
    if not user_dto:
        raise NotFoundError("User not found")
    return user_dto
