"""DTOs and API schemas for Todos app."""
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from ninja import Schema
from pydantic import StrictBool

from apps.core.sanitize import SanitizedSchema


class _Unset:
    """Marker for a field the client did not send."""

    def __repr__(self):
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class TodoPatch:
    """
    Partial update with explicit presence.

    A field left as UNSET was omitted by the client and stays untouched;
    a field set to None was sent as null and clears the column where that
    is allowed.
    """
    title: Any = UNSET
    description: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    completed: Any = UNSET

    @classmethod
    def from_schema(cls, payload: "TodoUpdateIn") -> "TodoPatch":
        return cls(**payload.dict(exclude_unset=True))

    def present(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass(frozen=True)
class TodoPage:
    todos: list
    page: int
    limit: int
    total: int
    pages: int


# =============================================================================
# Request Schemas
# =============================================================================

class TodoCreateIn(SanitizedSchema):
    """Body of POST /api/todos. Types are loose; the service enforces rules."""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[str] = None


class TodoUpdateIn(SanitizedSchema):
    """Body of PUT /api/todos/{id}. Any subset of fields."""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[str] = None
    completed: Optional[StrictBool] = None


# =============================================================================
# Response Schemas
# =============================================================================

class TodoOut(Schema):
    id: int
    user_id: UUID
    title: str
    description: Optional[str] = None
    completed: bool
    priority: int
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TodoDetailOut(Schema):
    todo: TodoOut


class TodoMessageOut(Schema):
    message: str
    todo: TodoOut


class PaginationOut(Schema):
    page: int
    limit: int
    total: int
    pages: int


class TodoListOut(Schema):
    todos: List[TodoOut]
    pagination: PaginationOut


class MessageOut(Schema):
    message: str


class ErrorOut(Schema):
    error: str
