import unittest
from unittest.mock import MagicMock

from nearby.auth import (
    InMemoryIdentityProvider,
    SupabaseIdentityProvider,
    parse_bearer_token,
)
from nearby.errors import InternalError, Unauthorized, ValidationError


def _response(status_code, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload if payload is not None else {}
    response.text = ""
    return response


class BearerTokenTests(unittest.TestCase):
    def test_parses_bearer(self):
        self.assertEqual(parse_bearer_token("Bearer abc.def"), "abc.def")
        self.assertEqual(parse_bearer_token("bearer xyz"), "xyz")

    def test_rejects_missing_or_malformed(self):
        for header in (None, "", "Bearer", "Basic abc", "Bearer a b"):
            with self.assertRaises(Unauthorized):
                parse_bearer_token(header)


class InMemoryIdentityProviderTests(unittest.TestCase):
    def setUp(self):
        self.identity = InMemoryIdentityProvider()

    def test_create_sign_in_and_resolve(self):
        user = self.identity.create_user(
            "Ana@Example.com", "secret123", {"name": "Ana", "avatar": "😊"}
        )
        self.assertEqual(user["email"], "ana@example.com")
        self.assertEqual(user["user_metadata"]["avatar"], "😊")

        session = self.identity.sign_in("ana@example.com", "secret123")
        self.assertEqual(self.identity.resolve(session["access_token"]), user["id"])

    def test_rejections(self):
        self.identity.create_user("ana@example.com", "secret123", {})
        with self.assertRaises(ValidationError):
            self.identity.create_user("ana@example.com", "secret123", {})
        with self.assertRaises(ValidationError):
            self.identity.create_user("not-an-email", "secret123", {})
        with self.assertRaises(ValidationError):
            self.identity.create_user("short@example.com", "123", {})
        with self.assertRaises(ValidationError):
            self.identity.sign_in("ana@example.com", "wrong-password")
        with self.assertRaises(Unauthorized):
            self.identity.resolve("never-issued")


class SupabaseIdentityProviderTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.identity = SupabaseIdentityProvider(
            url="https://project.supabase.co/",
            anon_key="anon",
            service_role_key="service",
            session=self.session,
        )

    def test_create_user_uses_service_role(self):
        self.session.post.return_value = _response(200, {"id": "u1", "email": "a@b.co"})

        user = self.identity.create_user("a@b.co", "secret123", {"name": "A"})

        self.assertEqual(user["id"], "u1")
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "https://project.supabase.co/auth/v1/admin/users")
        self.assertEqual(kwargs["headers"]["apikey"], "service")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer service")
        self.assertTrue(kwargs["json"]["email_confirm"])
        self.assertEqual(kwargs["json"]["user_metadata"], {"name": "A"})

    def test_create_user_rejection_is_validation_error(self):
        self.session.post.return_value = _response(
            422, {"msg": "A user with this email address has already been registered"}
        )
        with self.assertRaises(ValidationError) as ctx:
            self.identity.create_user("a@b.co", "secret123", {})
        self.assertIn("already been registered", ctx.exception.message)

    def test_create_user_outage_is_internal_error(self):
        self.session.post.return_value = _response(503, {"message": "unavailable"})
        with self.assertRaises(InternalError):
            self.identity.create_user("a@b.co", "secret123", {})

    def test_resolve(self):
        self.session.get.return_value = _response(200, {"id": "u1"})
        self.assertEqual(self.identity.resolve("tok"), "u1")
        kwargs = self.session.get.call_args.kwargs
        self.assertEqual(kwargs["headers"]["apikey"], "anon")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok")

    def test_resolve_rejected_token(self):
        self.session.get.return_value = _response(401, {"msg": "invalid JWT"})
        with self.assertRaises(Unauthorized):
            self.identity.resolve("tok")

    def test_sign_in_password_grant(self):
        self.session.post.return_value = _response(
            200, {"access_token": "jwt", "user": {"id": "u1"}}
        )
        session = self.identity.sign_in("a@b.co", "secret123")
        self.assertEqual(session["access_token"], "jwt")
        kwargs = self.session.post.call_args.kwargs
        self.assertEqual(kwargs["params"], {"grant_type": "password"})
        self.assertEqual(kwargs["headers"]["apikey"], "anon")


if __name__ == "__main__":
    unittest.main()
