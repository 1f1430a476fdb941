"""
Todos API endpoints.

All routes sit behind the session token auth gate; the owner of every
query is ``request.auth.user_id`` and never anything the client sends.
Write bodies (create, update) are sanitized while they are parsed.
"""
from typing import Optional
from ninja import Router
from django.http import HttpRequest

from apps.identity.auth import SessionTokenAuth
from . import services
from .dtos import (
    TodoCreateIn, TodoUpdateIn, TodoPatch,
    TodoDetailOut, TodoMessageOut, TodoListOut, MessageOut, ErrorOut,
)

router = Router(tags=["Todos"], auth=SessionTokenAuth())


@router.post("", response={201: TodoMessageOut, 400: ErrorOut})
def create_todo(request: HttpRequest, payload: TodoCreateIn):
    """Create a todo owned by the caller. Priority defaults to 1."""
    todo = services.create_todo(
        request.auth.user_id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        due_date=payload.due_date,
    )
    return 201, {"message": "Todo created successfully", "todo": todo}


@router.get("", response=TodoListOut)
def list_todos(
    request: HttpRequest,
    completed: Optional[str] = None,
    priority: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
):
    """
    List the caller's todos, newest first.

    Query Parameters:
    - completed: "true" for done items, any other value for open ones
    - priority: 1, 2 or 3; empty means no filter
    - page, limit: offset pagination (defaults 1 and 10 when missing or non-numeric)
    """
    result = services.list_todos(
        request.auth.user_id,
        completed=None if completed is None else completed == 'true',
        priority=services.parse_priority_filter(priority),
        page=services.parse_page_value(page, 1),
        limit=services.parse_page_value(limit, services.DEFAULT_PAGE_SIZE),
    )
    return {
        "todos": result.todos,
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "pages": result.pages,
        },
    }


@router.get("/{todo_id}", response={200: TodoDetailOut, 400: ErrorOut, 404: ErrorOut})
def get_todo(request: HttpRequest, todo_id: str):
    todo = services.get_todo(request.auth.user_id, services.parse_todo_id(todo_id))
    return 200, {"todo": todo}


@router.put("/{todo_id}", response={200: TodoMessageOut, 400: ErrorOut, 404: ErrorOut})
def update_todo(request: HttpRequest, todo_id: str, payload: TodoUpdateIn):
    """
    Partial update. Omitted fields are left alone; null clears
    description and due_date.
    """
    todo = services.update_todo(
        request.auth.user_id,
        services.parse_todo_id(todo_id),
        TodoPatch.from_schema(payload),
    )
    return 200, {"message": "Todo updated successfully", "todo": todo}


@router.patch("/{todo_id}/toggle", response={200: TodoMessageOut, 400: ErrorOut, 404: ErrorOut})
def toggle_todo(request: HttpRequest, todo_id: str):
    todo = services.toggle_todo(request.auth.user_id, services.parse_todo_id(todo_id))
    return 200, {"message": "Todo completion status toggled", "todo": todo}


@router.delete("/{todo_id}", response={200: MessageOut, 400: ErrorOut, 404: ErrorOut})
def delete_todo(request: HttpRequest, todo_id: str):
    services.delete_todo(request.auth.user_id, services.parse_todo_id(todo_id))
    return 200, {"message": "Todo deleted successfully"}
