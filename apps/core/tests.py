from django.test import TestCase, SimpleTestCase, Client
from ninja.errors import ValidationError as SchemaValidationError

from .errors import AuthError, ConflictError, NotFoundError, ValidationError, _describe_schema_error
from .sanitize import SanitizedSchema, sanitize_payload


class SanitizeTest(SimpleTestCase):
    def test_sanitize_payload_escapes_strings_in_place(self):
        payload = {"title": "<i>hi</i> & 'bye'", "priority": 2, "completed": True, "description": None}
        result = sanitize_payload(payload)
        self.assertIs(result, payload)
        self.assertEqual(payload["title"], "&lt;i&gt;hi&lt;/i&gt; &amp; &#x27;bye&#x27;")
        self.assertEqual(payload["priority"], 2)
        self.assertIs(payload["completed"], True)
        self.assertIsNone(payload["description"])

    def test_schema_sanitizes_before_validation(self):
        class NoteIn(SanitizedSchema):
            text: str

        self.assertEqual(NoteIn(text='"quoted"').text, "&quot;quoted&quot;")

    def test_todo_schemas_escape_only_strings(self):
        from apps.todos.dtos import TodoCreateIn, TodoUpdateIn

        payload = TodoCreateIn(title="<b>x</b>", description=None, priority=2)
        self.assertEqual(payload.title, "&lt;b&gt;x&lt;/b&gt;")
        self.assertIsNone(payload.description)
        self.assertEqual(payload.priority, 2)

        update = TodoUpdateIn(description="a & b", completed=True)
        self.assertEqual(update.description, "a &amp; b")
        self.assertIs(update.completed, True)
        self.assertEqual(update.dict(exclude_unset=True), {"description": "a &amp; b", "completed": True})


class ErrorTaxonomyTest(SimpleTestCase):
    def test_status_codes(self):
        self.assertEqual(ValidationError("x").status_code, 400)
        self.assertEqual(AuthError("x").status_code, 401)
        self.assertEqual(AuthError("x", status_code=403).status_code, 403)
        self.assertEqual(NotFoundError("x").status_code, 404)
        self.assertEqual(ConflictError("x").status_code, 409)

    def test_body_includes_extra(self):
        error = ValidationError("All fields are required", extra={"required": ["name"]})
        self.assertEqual(error.to_body(), {"error": "All fields are required", "required": ["name"]})

    def test_schema_error_names_field(self):
        exc = SchemaValidationError([{"loc": ("body", "payload", "completed"), "msg": "Input should be a valid boolean"}])
        self.assertEqual(_describe_schema_error(exc), "completed: Input should be a valid boolean")


class HealthTest(TestCase):
    def test_health(self):
        response = Client().get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "OK", "message": "Server is running"})
