"""
Unit tests for todo services.
Covers validation, owner scoping, pagination and conditional mutations.
"""
import math
from datetime import datetime, timezone as dt_timezone

from django.db import IntegrityError, transaction
from django.test import TestCase

from apps.core.errors import NotFoundError, ValidationError
from apps.identity.models import User
from apps.todos import services
from apps.todos.dtos import TodoPatch
from apps.todos.models import Todo


def make_user(email):
    return User.objects.create_user(email=email, name=email.split("@")[0], password="secret1")


class CreateTodoTest(TestCase):
    def setUp(self):
        self.ann = make_user("ann@x.com")

    def test_defaults(self):
        todo = services.create_todo(self.ann.id, title="  Buy milk ")
        self.assertEqual(todo.title, "Buy milk")
        self.assertEqual(todo.priority, 1)
        self.assertFalse(todo.completed)
        self.assertIsNone(todo.description)
        self.assertIsNone(todo.due_date)
        self.assertEqual(todo.user_id, self.ann.id)

    def test_title_rules(self):
        for title in [None, "", "   ", "x" * 256, 7]:
            with self.assertRaises(ValidationError):
                services.create_todo(self.ann.id, title=title)
        self.assertEqual(services.create_todo(self.ann.id, title="x" * 255).title, "x" * 255)

    def test_priority_rules(self):
        for priority in [0, 4, -1, True, "2"]:
            with self.assertRaises(ValidationError):
                services.create_todo(self.ann.id, title="t", priority=priority)
        self.assertEqual(services.create_todo(self.ann.id, title="t", priority=3).priority, 3)

    def test_description_must_be_text(self):
        with self.assertRaises(ValidationError):
            services.create_todo(self.ann.id, title="t", description=["not", "text"])

    def test_due_date_parsing(self):
        todo = services.create_todo(self.ann.id, title="t", due_date="2030-05-01T10:30:00Z")
        self.assertEqual(todo.due_date, datetime(2030, 5, 1, 10, 30, tzinfo=dt_timezone.utc))

        todo = services.create_todo(self.ann.id, title="t", due_date="2030-05-01")
        self.assertEqual(todo.due_date.date().isoformat(), "2030-05-01")

        for bad in ["tomorrow", "2030-13-01", "2030-02-30T00:00:00"]:
            with self.assertRaises(ValidationError):
                services.create_todo(self.ann.id, title="t", due_date=bad)

    def test_validation_never_reaches_store(self):
        with self.assertRaises(ValidationError):
            services.create_todo(self.ann.id, title="")
        self.assertEqual(Todo.objects.count(), 0)

    def test_priority_check_constraint(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Todo.objects.create(user=self.ann, title="t", priority=5)


class ListTodosTest(TestCase):
    def setUp(self):
        self.ann = make_user("ann@x.com")
        self.bob = make_user("bob@x.com")
        for i in range(25):
            services.create_todo(self.ann.id, title=f"todo {i}", priority=(i % 3) + 1)
        services.create_todo(self.bob.id, title="bob's")

    def test_pagination_invariants(self):
        for page, limit in [(1, 10), (3, 10), (4, 10), (2, 7), (1, 100)]:
            result = services.list_todos(self.ann.id, page=page, limit=limit)
            self.assertEqual(result.total, 25)
            self.assertEqual(result.pages, math.ceil(25 / limit))
            self.assertLessEqual(len(result.todos), limit)

        self.assertEqual(len(services.list_todos(self.ann.id, page=3, limit=10).todos), 5)
        self.assertEqual(len(services.list_todos(self.ann.id, page=4, limit=10).todos), 0)

    def test_newest_first(self):
        result = services.list_todos(self.ann.id, limit=3)
        self.assertEqual([t.title for t in result.todos], ["todo 24", "todo 23", "todo 22"])

    def test_scoped_to_owner(self):
        result = services.list_todos(self.bob.id)
        self.assertEqual(result.total, 1)
        self.assertEqual(result.todos[0].title, "bob's")

    def test_filters_are_conjunctive(self):
        first = Todo.objects.filter(user=self.ann).order_by('id').first()
        services.toggle_todo(self.ann.id, first.id)

        done = services.list_todos(self.ann.id, completed=True)
        self.assertEqual(done.total, 1)

        open_high = services.list_todos(self.ann.id, completed=False, priority=3)
        expected = Todo.objects.filter(user=self.ann, completed=False, priority=3).count()
        self.assertEqual(open_high.total, expected)
        self.assertTrue(all(t.priority == 3 and not t.completed for t in open_high.todos))

    def test_paging_values_are_clamped(self):
        result = services.list_todos(self.ann.id, page=0, limit=0)
        self.assertEqual((result.page, result.limit), (1, 1))
        self.assertEqual(services.list_todos(self.ann.id, limit=1000).limit, services.MAX_PAGE_SIZE)

    def test_empty_list(self):
        carol = make_user("carol@x.com")
        result = services.list_todos(carol.id)
        self.assertEqual((result.total, result.pages, result.todos), (0, 0, []))


class MutateTodoTest(TestCase):
    def setUp(self):
        self.ann = make_user("ann@x.com")
        self.bob = make_user("bob@x.com")
        self.todo = services.create_todo(
            self.ann.id, title="Buy milk", description="2 litres", due_date="2030-01-01",
        )

    def test_other_owner_sees_not_found(self):
        with self.assertRaises(NotFoundError):
            services.get_todo(self.bob.id, self.todo.id)
        with self.assertRaises(NotFoundError):
            services.update_todo(self.bob.id, self.todo.id, TodoPatch(title="mine now"))
        with self.assertRaises(NotFoundError):
            services.toggle_todo(self.bob.id, self.todo.id)
        with self.assertRaises(NotFoundError):
            services.delete_todo(self.bob.id, self.todo.id)

        self.todo.refresh_from_db()
        self.assertEqual(self.todo.title, "Buy milk")
        self.assertFalse(self.todo.completed)

    def test_partial_update_leaves_omitted_fields(self):
        updated = services.update_todo(self.ann.id, self.todo.id, TodoPatch(priority=2))
        self.assertEqual(updated.priority, 2)
        self.assertEqual(updated.title, "Buy milk")
        self.assertEqual(updated.description, "2 litres")
        self.assertIsNotNone(updated.due_date)

    def test_explicit_null_clears_optional_fields(self):
        updated = services.update_todo(self.ann.id, self.todo.id, TodoPatch(description=None, due_date=None))
        self.assertIsNone(updated.description)
        self.assertIsNone(updated.due_date)

    def test_update_validates_present_fields(self):
        for patch in [
            TodoPatch(title=None),
            TodoPatch(title="  "),
            TodoPatch(priority=None),
            TodoPatch(priority=9),
            TodoPatch(completed=None),
            TodoPatch(completed="true"),
            TodoPatch(due_date="not a date"),
        ]:
            with self.assertRaises(ValidationError):
                services.update_todo(self.ann.id, self.todo.id, patch)

    def test_empty_update_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            services.update_todo(self.ann.id, self.todo.id, TodoPatch())
        self.assertEqual(ctx.exception.message, "No valid fields to update")

    def test_update_bumps_updated_at(self):
        before = self.todo.updated_at
        updated = services.update_todo(self.ann.id, self.todo.id, TodoPatch(completed=True))
        self.assertTrue(updated.completed)
        self.assertGreater(updated.updated_at, before)

    def test_toggle_twice_restores_state(self):
        original = self.todo.completed
        first = services.toggle_todo(self.ann.id, self.todo.id)
        second = services.toggle_todo(self.ann.id, self.todo.id)
        self.assertEqual(first.completed, not original)
        self.assertEqual(second.completed, original)
        self.assertGreater(first.updated_at, self.todo.updated_at)
        self.assertGreater(second.updated_at, first.updated_at)

    def test_delete(self):
        services.delete_todo(self.ann.id, self.todo.id)
        with self.assertRaises(NotFoundError):
            services.get_todo(self.ann.id, self.todo.id)
        with self.assertRaises(NotFoundError):
            services.delete_todo(self.ann.id, self.todo.id)

    def test_deleting_owner_cascades(self):
        self.ann.delete()
        self.assertFalse(Todo.objects.filter(id=self.todo.id).exists())


class ParseTodoIdTest(TestCase):
    def test_numeric_ids_only(self):
        self.assertEqual(services.parse_todo_id("12"), 12)
        self.assertEqual(services.parse_todo_id(12), 12)
        for raw in ["abc", "0", "-1", "1.5", "", None, "\u00b2", "\u2460", "\uff11"]:
            with self.assertRaises(ValidationError):
                services.parse_todo_id(raw)


class ParseQueryValuesTest(TestCase):
    def test_priority_filter(self):
        self.assertIsNone(services.parse_priority_filter(None))
        self.assertIsNone(services.parse_priority_filter(""))
        self.assertIsNone(services.parse_priority_filter("  "))
        self.assertEqual(services.parse_priority_filter("2"), 2)
        with self.assertRaises(ValidationError):
            services.parse_priority_filter("urgent")

    def test_page_value(self):
        self.assertEqual(services.parse_page_value(None, 10), 10)
        self.assertEqual(services.parse_page_value("", 10), 10)
        self.assertEqual(services.parse_page_value("x", 1), 1)
        self.assertEqual(services.parse_page_value("25", 10), 25)
