import json
from io import StringIO
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from django.test import TestCase, Client
from django.core.management import call_command

from apps.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from apps.todos.models import Todo
from .jwt_auth import TokenCodec, TokenError
from .models import User
from .services import register_user, login_user, verify_token, get_profile

SECRET = "test-signing-secret-that-is-long-enough-for-hs256"


def make_codec(**kwargs):
    return TokenCodec(secret=kwargs.pop('secret', SECRET), **kwargs)


class TokenCodecTest(TestCase):
    def test_sign_and_verify_round_trip(self):
        codec = make_codec()
        user_id = uuid4()
        claims = codec.verify(codec.sign(user_id, "ann@x.com"))
        self.assertEqual(claims.user_id, user_id)
        self.assertEqual(claims.email, "ann@x.com")
        self.assertEqual(claims.expires_at - claims.issued_at, timedelta(hours=24))

    def test_expired_token_is_rejected(self):
        codec = make_codec()
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = codec.sign(uuid4(), "ann@x.com", now=issued)
        with self.assertRaises(TokenError):
            codec.verify(token)

    def test_token_signed_with_other_secret_is_rejected(self):
        token = make_codec(secret="another-secret-that-is-also-long-enough").sign(uuid4(), "a@x.com")
        with self.assertRaises(TokenError):
            make_codec().verify(token)

    def test_garbage_is_rejected(self):
        with self.assertRaises(TokenError):
            make_codec().verify("not.a.token")

    def test_secret_is_required(self):
        with self.assertRaises(ValueError):
            TokenCodec(secret="")


class RegisterServiceTest(TestCase):
    def setUp(self):
        self.codec = make_codec()

    def test_register_returns_public_fields_and_token(self):
        result = register_user(self.codec, "  Ann  ", "  Ann@X.com ", "secret1")
        self.assertEqual(result.user.name, "Ann")
        self.assertEqual(result.user.email, "ann@x.com")
        self.assertFalse(hasattr(result.user, "password"))
        self.assertEqual(self.codec.verify(result.token).user_id, result.user.id)

    def test_password_is_stored_as_digest(self):
        result = register_user(self.codec, "Ann", "ann@x.com", "secret1")
        user = User.objects.get(id=result.user.id)
        self.assertNotEqual(user.password, "secret1")
        self.assertTrue(user.check_password("secret1"))

    def test_duplicate_normalized_email_conflicts(self):
        register_user(self.codec, "Ann", "ann@x.com", "secret1")
        with self.assertRaises(ConflictError):
            register_user(self.codec, "Ann Again", " ANN@x.com", "secret2")
        self.assertEqual(User.objects.count(), 1)

    def test_missing_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            register_user(self.codec, "Ann", None, "secret1")
        self.assertEqual(ctx.exception.message, "All fields are required")
        self.assertEqual(ctx.exception.extra["required"], ["name", "email", "password"])

    def test_name_length_is_checked_after_trim(self):
        with self.assertRaises(ValidationError):
            register_user(self.codec, " A ", "ann@x.com", "secret1")
        with self.assertRaises(ValidationError):
            register_user(self.codec, "A" * 31, "ann@x.com", "secret1")

    def test_invalid_email(self):
        for email in ["ann", "ann@", "ann @x.com", "a" * 95 + "@x.com"]:
            with self.assertRaises(ValidationError):
                register_user(self.codec, "Ann", email, "secret1")

    def test_short_password(self):
        with self.assertRaises(ValidationError):
            register_user(self.codec, "Ann", "ann@x.com", "12345")


class LoginServiceTest(TestCase):
    def setUp(self):
        self.codec = make_codec()
        self.user = User.objects.create_user(email="ann@x.com", name="Ann", password="secret1")

    def test_login_success(self):
        result = login_user(self.codec, " Ann@X.com", "secret1")
        self.assertEqual(result.user.id, self.user.id)
        self.assertEqual(self.codec.verify(result.token).email, "ann@x.com")

    def test_login_updates_last_login(self):
        login_user(self.codec, "ann@x.com", "secret1")
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_wrong_password_and_unknown_email_fail_identically(self):
        with self.assertRaises(AuthError) as wrong_password:
            login_user(self.codec, "ann@x.com", "wrong-password")
        with self.assertRaises(AuthError) as unknown_email:
            login_user(self.codec, "nobody@x.com", "secret1")
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)
        self.assertEqual(wrong_password.exception.status_code, unknown_email.exception.status_code)

    def test_inactive_account_cannot_log_in(self):
        self.user.is_active = False
        self.user.save()
        with self.assertRaises(AuthError):
            login_user(self.codec, "ann@x.com", "secret1")

    def test_missing_credentials(self):
        with self.assertRaises(ValidationError):
            login_user(self.codec, "ann@x.com", "")


class VerifyTokenTest(TestCase):
    def test_verify_token_never_raises(self):
        codec = make_codec()
        self.assertIsNone(verify_token(codec, None))
        self.assertIsNone(verify_token(codec, ""))
        self.assertIsNone(verify_token(codec, "garbage"))

        user_id = uuid4()
        identity = verify_token(codec, codec.sign(user_id, "a@x.com"))
        self.assertEqual(identity.user_id, user_id)

    def test_profile_of_missing_user(self):
        with self.assertRaises(NotFoundError):
            get_profile(uuid4())


class AuthAPITest(TestCase):
    """End-to-end tests of /api/auth and /api/users."""

    def setUp(self):
        self.client = Client()

    def post_json(self, path, payload, client=None):
        return (client or self.client).post(path, data=json.dumps(payload), content_type='application/json')

    def register(self, client=None, email="ann@x.com"):
        return self.post_json('/api/auth/register', {"name": "Ann", "email": email, "password": "secret1"}, client)

    def test_register(self):
        response = self.register()
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["message"], "User registered successfully")
        self.assertEqual(set(data["user"]), {"id", "name", "email"})
        self.assertTrue(data["token"])
        self.assertEqual(self.client.session["token"], data["token"])

    def test_register_duplicate(self):
        self.register()
        response = self.register(client=Client(), email="ANN@x.com")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "User with this email already exists"})

    def test_register_missing_fields(self):
        response = self.post_json('/api/auth/register', {"name": "Ann"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["required"], ["name", "email", "password"])

    def test_register_rejects_wrong_types(self):
        response = self.post_json('/api/auth/register', {"name": 42, "email": "ann@x.com", "password": "secret1"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_login_and_failures_share_shape(self):
        self.register(client=Client())

        ok = self.post_json('/api/auth/login', {"email": "ann@x.com", "password": "secret1"})
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json()["message"], "Login successful")
        self.assertNotIn("password", ok.json()["user"])

        wrong = self.post_json('/api/auth/login', {"email": "ann@x.com", "password": "nope123"}, Client())
        missing = self.post_json('/api/auth/login', {"email": "bob@x.com", "password": "secret1"}, Client())
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(wrong.json(), missing.json())
        self.assertEqual(wrong.json(), {"error": "Invalid email or password"})

    def test_login_invalid_email_shape(self):
        response = self.post_json('/api/auth/login', {"email": "not-an-email", "password": "secret1"})
        self.assertEqual(response.status_code, 400)

    def test_status_follows_session(self):
        response = self.client.get('/api/auth/status')
        self.assertEqual(response.json(), {"authenticated": False})

        user_id = self.register().json()["user"]["id"]
        response = self.client.get('/api/auth/status')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"authenticated": True, "user": {"id": user_id, "email": "ann@x.com"}})

        self.client.post('/api/auth/logout')
        self.assertEqual(self.client.get('/api/auth/status').json(), {"authenticated": False})

    def test_status_with_invalid_token_is_not_an_error(self):
        response = self.client.get('/api/auth/status', HTTP_AUTHORIZATION='Bearer garbage')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"authenticated": False})

    def test_logout_is_idempotent(self):
        self.register()
        for _ in range(2):
            response = self.client.post('/api/auth/logout')
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json(), {"message": "Logged out successfully"})

    def test_profile(self):
        self.register()
        response = self.client.get('/api/users/profile')
        self.assertEqual(response.status_code, 200)
        user = response.json()["user"]
        self.assertEqual(user["email"], "ann@x.com")
        self.assertIn("created_at", user)
        self.assertNotIn("password", user)

    def test_profile_requires_token(self):
        response = self.client.get('/api/users/profile')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Access token required"})

    def test_profile_rejects_bad_token(self):
        response = self.client.get('/api/users/profile', HTTP_AUTHORIZATION='Bearer garbage')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Invalid or expired token"})

    def test_profile_accepts_bearer_header(self):
        token = self.register(client=Client()).json()["token"]
        response = self.client.get('/api/users/profile', HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 200)

    def test_profile_of_deleted_user(self):
        self.register()
        User.objects.all().delete()
        response = self.client.get('/api/users/profile')
        self.assertEqual(response.status_code, 404)


class SeedUsersCommandTest(TestCase):
    def test_seed_is_repeatable(self):
        out = StringIO()
        call_command('seed_users', stdout=out)
        call_command('seed_users', stdout=out)
        self.assertIn('Reset user: ann@example.com', out.getvalue())
        self.assertEqual(User.objects.count(), 2)
        ann = User.objects.get(email='ann@example.com')
        self.assertTrue(ann.check_password('password'))
        self.assertEqual(Todo.objects.filter(user=ann).count(), 2)
