"""
Identity API endpoints.

Provides register, login, logout and status under /api/auth, and the
caller's profile under /api/users. The issued JWT is returned in the body
and kept in the server-side session, which is what the auth gate reads.
"""
import logging
from ninja import Router
from django.http import HttpRequest

from .auth import SessionTokenAuth, SESSION_TOKEN_KEY, SESSION_USER_KEY, get_request_token
from .dtos import (
    RegisterIn, LoginIn, AuthOut, MessageOut, AuthStatusOut, ProfileOut, ErrorOut, AuthResult,
)
from .jwt_auth import get_token_codec
from .services import register_user, login_user, verify_token, get_profile

logger = logging.getLogger(__name__)

router = Router(tags=["Auth"])
users_router = Router(tags=["Users"], auth=SessionTokenAuth())


# =============================================================================
# Helper Functions
# =============================================================================

def start_session(request: HttpRequest, result: AuthResult) -> None:
    """Store the fresh token in a new session key."""
    request.session.cycle_key()
    request.session[SESSION_TOKEN_KEY] = result.token
    request.session[SESSION_USER_KEY] = str(result.user.id)


def auth_body(message: str, result: AuthResult) -> dict:
    return {
        "message": message,
        "user": {
            "id": result.user.id,
            "name": result.user.name,
            "email": result.user.email,
        },
        "token": result.token,
    }


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/register", response={201: AuthOut, 400: ErrorOut, 409: ErrorOut}, auth=None)
def register(request: HttpRequest, payload: RegisterIn):
    """
    Create an account and sign the caller in.
    """
    result = register_user(get_token_codec(), payload.name, payload.email, payload.password)
    start_session(request, result)
    return 201, auth_body("User registered successfully", result)


@router.post("/login", response={200: AuthOut, 400: ErrorOut, 401: ErrorOut}, auth=None)
def login(request: HttpRequest, payload: LoginIn):
    """
    Authenticate by email and password.

    Unknown email and wrong password produce the same 401.
    """
    result = login_user(get_token_codec(), payload.email, payload.password, request=request)
    start_session(request, result)
    return 200, auth_body("Login successful", result)


@router.post("/logout", response=MessageOut, auth=None)
def logout(request: HttpRequest):
    """
    Destroy the server-side session. Safe to call repeatedly.
    """
    if request.session.get(SESSION_USER_KEY):
        logger.info(f"Closing session for user {request.session[SESSION_USER_KEY]}")
    request.session.flush()
    return {"message": "Logged out successfully"}


@router.get("/status", response=AuthStatusOut, auth=None, exclude_none=True)
def auth_status(request: HttpRequest):
    """
    Report whether the current session holds a usable token.

    Any verification problem reads as "not authenticated", never as an error.
    """
    identity = verify_token(get_token_codec(), get_request_token(request))
    if identity is None:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "user": {"id": identity.user_id, "email": identity.email},
    }


# =============================================================================
# User Endpoints
# =============================================================================

@users_router.get("/profile", response={200: ProfileOut, 404: ErrorOut})
def profile(request: HttpRequest):
    """
    Current user's public profile.
    """
    return 200, {"user": get_profile(request.auth.user_id)}
