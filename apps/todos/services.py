"""
Services for Todos app.

Every function is scoped by owner_id, which callers take from the auth
gate identity. A todo owned by someone else is indistinguishable from a
missing one: both raise NotFoundError.

Update, delete and toggle are single conditional statements filtered by
id AND owner; the affected row count decides between success and 404.
"""
import logging
import math
from datetime import datetime, time
from typing import Optional
from uuid import UUID

from django.db.models import Case, Value, When
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.core.errors import NotFoundError, ValidationError
from .dtos import TodoPage, TodoPatch
from .models import Todo, TodoPriority

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

TODO_NOT_FOUND = "Todo not found"
TITLE_LENGTH_ERROR = f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
PRIORITY_ERROR = "Priority must be a number between 1 and 3"


# =============================================================================
# Validation
# =============================================================================

def parse_todo_id(raw) -> int:
    """Path ids must be positive integers."""
    value = str(raw).strip() if raw is not None else ''
    if not (value.isascii() and value.isdecimal()) or int(value) < 1:
        raise ValidationError("Valid todo ID is required")
    return int(value)


def parse_priority_filter(raw) -> Optional[int]:
    """An empty query value means no filter."""
    value = (raw or '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(PRIORITY_ERROR)


def parse_page_value(raw, default: int) -> int:
    """Missing or non-numeric paging values fall back to the default."""
    try:
        return int((raw or '').strip())
    except ValueError:
        return default


def _clean_title(value) -> str:
    if not isinstance(value, str):
        raise ValidationError("Title is required and must be a string")
    title = value.strip()
    if not title or len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(TITLE_LENGTH_ERROR)
    return title


def _clean_description(value) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError("Description must be a string")
    return value


def _clean_priority(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(PRIORITY_ERROR)
    if value < TodoPriority.LOW or value > TodoPriority.HIGH:
        raise ValidationError(PRIORITY_ERROR)
    return value


def _clean_due_date(value) -> Optional[datetime]:
    """
    Accept an ISO datetime or a bare date (midnight). Naive values are
    read in the current time zone. Empty means no due date.
    """
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ValidationError("Invalid due date format")

    try:
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            if day is not None:
                parsed = datetime.combine(day, time.min)
    except ValueError:
        parsed = None

    if parsed is None:
        raise ValidationError("Invalid due date format")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _clean_completed(value) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("Completed must be a boolean value")
    return value


def _clean_patch(patch: TodoPatch) -> dict:
    """Validate only the fields the client sent."""
    present = patch.present()
    changes = {}

    if 'title' in present:
        if present['title'] is None:
            raise ValidationError(TITLE_LENGTH_ERROR)
        changes['title'] = _clean_title(present['title'])
    if 'description' in present:
        changes['description'] = _clean_description(present['description'])
    if 'priority' in present:
        changes['priority'] = _clean_priority(present['priority'])
    if 'due_date' in present:
        changes['due_date'] = _clean_due_date(present['due_date'])
    if 'completed' in present:
        changes['completed'] = _clean_completed(present['completed'])

    return changes


# =============================================================================
# Queries
# =============================================================================

def _owned(owner_id: UUID):
    return Todo.objects.filter(user_id=owner_id)


def get_todo(owner_id: UUID, todo_id: int) -> Todo:
    try:
        return _owned(owner_id).get(id=todo_id)
    except Todo.DoesNotExist:
        raise NotFoundError(TODO_NOT_FOUND)


def list_todos(
    owner_id: UUID,
    completed: Optional[bool] = None,
    priority: Optional[int] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> TodoPage:
    """
    One page of the caller's todos, newest first.

    Filters are optional and combined with AND. The total comes from a
    separate count over the same filters. Out-of-range paging values are
    clamped: page to >= 1, limit to 1..MAX_PAGE_SIZE.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    queryset = _owned(owner_id)
    if completed is not None:
        queryset = queryset.filter(completed=completed)
    if priority is not None:
        queryset = queryset.filter(priority=priority)

    total = queryset.count()
    offset = (page - 1) * limit
    todos = list(queryset.order_by('-created_at', '-id')[offset:offset + limit])

    return TodoPage(
        todos=todos,
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )


# =============================================================================
# Mutations
# =============================================================================

def create_todo(
    owner_id: UUID,
    title,
    description=None,
    priority=None,
    due_date=None,
) -> Todo:
    title = _clean_title(title)
    description = _clean_description(description)
    priority = TodoPriority.LOW if priority is None else _clean_priority(priority)
    due_date = _clean_due_date(due_date)

    todo = Todo.objects.create(
        user_id=owner_id,
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
    )
    logger.info(f"Created todo {todo.id} for user {owner_id}")
    return todo


def update_todo(owner_id: UUID, todo_id: int, patch: TodoPatch) -> Todo:
    changes = _clean_patch(patch)
    if not changes:
        raise ValidationError("No valid fields to update")

    changes['updated_at'] = timezone.now()
    if not _owned(owner_id).filter(id=todo_id).update(**changes):
        raise NotFoundError(TODO_NOT_FOUND)

    logger.info(f"Updated todo {todo_id} fields {sorted(changes)}")
    return get_todo(owner_id, todo_id)


def toggle_todo(owner_id: UUID, todo_id: int) -> Todo:
    flipped = Case(
        When(completed=True, then=Value(False)),
        default=Value(True),
    )
    if not _owned(owner_id).filter(id=todo_id).update(completed=flipped, updated_at=timezone.now()):
        raise NotFoundError(TODO_NOT_FOUND)

    return get_todo(owner_id, todo_id)


def delete_todo(owner_id: UUID, todo_id: int) -> None:
    deleted, _ = _owned(owner_id).filter(id=todo_id).delete()
    if not deleted:
        raise NotFoundError(TODO_NOT_FOUND)
    logger.info(f"Deleted todo {todo_id} for user {owner_id}")
