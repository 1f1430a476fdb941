"""DTOs for Identity app."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from typing import Optional, List


@dataclass(frozen=True)
class UserDTO:
    """Public view of a user. Never carries the password digest."""
    id: UUID
    name: str
    email: str
    created_at: datetime


@dataclass(frozen=True)
class AuthIdentity:
    """Caller identity attached to the request by the auth gate."""
    user_id: UUID
    email: str


@dataclass(frozen=True)
class AuthResult:
    user: UserDTO
    token: str


from ninja import Schema


class RegisterIn(Schema):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(Schema):
    email: Optional[str] = None
    password: Optional[str] = None


class PublicUserOut(Schema):
    id: UUID
    name: str
    email: str


class ProfileUserOut(PublicUserOut):
    created_at: datetime


class AuthOut(Schema):
    message: str
    user: PublicUserOut
    token: str


class MessageOut(Schema):
    message: str


class StatusUserOut(Schema):
    id: UUID
    email: str


class AuthStatusOut(Schema):
    authenticated: bool
    user: Optional[StatusUserOut] = None


class ProfileOut(Schema):
    user: ProfileUserOut


class ErrorOut(Schema):
    error: str
    required: Optional[List[str]] = None
