import unittest
from unittest.mock import Mock, patch

import requests

from lyz.auth import verify_token
from lyz.models import User, db
from lyz.tests.base import ApiTestCase

MEMBER = {"id": 987, "name": "Ana Souza", "email": "ana@member.test"}


def member_response(status_code=200, body=None):
    response = Mock(status_code=status_code)
    response.json.return_value = body if body is not None else MEMBER
    return response


class ValidateEmailTests(ApiTestCase):
    def test_missing_email(self):
        response = self.client.get("/api/auth/validate-email")
        self.assertEqual(response.status_code, 400)

    @patch("lyz.membership.requests.get")
    def test_known_member(self, get):
        get.return_value = member_response()
        response = self.client.get("/api/auth/validate-email?email=ana@member.test")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["userData"], MEMBER)

        _, kwargs = get.call_args
        self.assertEqual(kwargs["params"], {"email": "ana@member.test"})
        self.assertEqual(kwargs["headers"], {"api_key": "test-key"})

    @patch("lyz.membership.requests.get")
    def test_member_already_registered(self, get):
        get.return_value = member_response(body={"id": 1, "email": self.user.email})
        response = self.client.get(f"/api/auth/validate-email?email={self.user.email}")
        self.assertEqual(response.status_code, 409)

    @patch("lyz.membership.requests.get")
    def test_unknown_member(self, get):
        get.return_value = member_response(status_code=404)
        response = self.client.get("/api/auth/validate-email?email=nobody@test")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["message"], "User not found in Curseduca")


class RegisterTests(ApiTestCase):
    @patch("lyz.membership.requests.get")
    def test_register_unknown_member_creates_nothing(self, get):
        """Test que un email fuera del directorio devuelve 400 sin crear usuario"""
        get.return_value = member_response(status_code=404)
        before = User.query.count()

        response = self.client.post(
            "/api/auth/register",
            json={"email": "stranger@test", "password": "pw123456"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(User.query.count(), before)
        self.assertIsNone(User.query.filter_by(email="stranger@test").first())

    @patch("lyz.membership.requests.get")
    def test_register_member(self, get):
        get.return_value = member_response()
        response = self.client.post(
            "/api/auth/register",
            json={"email": "ana@member.test", "password": "pw123456", "company_id": self.company.id},
        )

        self.assertEqual(response.status_code, 201)
        body = response.get_json()
        self.assertIn("accessToken", body)
        self.assertIn("refreshToken", body)

        user = User.query.filter_by(email="ana@member.test").first()
        self.assertEqual(user.curseduca_id, "987")
        self.assertEqual(user.name, "Ana Souza")
        self.assertEqual(user.role, "user")
        self.assertEqual(user.company_id, self.company.id)
        self.assertNotEqual(user.password, "pw123456")
        self.assertTrue(user.check_password("pw123456"))

    @patch("lyz.membership.requests.get")
    def test_register_defaults_to_first_company(self, get):
        get.return_value = member_response()
        response = self.client.post(
            "/api/auth/register",
            json={"email": "ana@member.test", "password": "pw123456"},
        )
        self.assertEqual(response.status_code, 201)
        user = User.query.filter_by(email="ana@member.test").first()
        self.assertEqual(user.company_id, self.superadmin.company_id)

    @patch("lyz.membership.requests.get")
    def test_register_duplicate(self, get):
        get.return_value = member_response(body={"id": 5, "email": self.user.email})
        response = self.client.post(
            "/api/auth/register",
            json={"email": self.user.email, "password": "pw123456"},
        )
        self.assertEqual(response.status_code, 409)

    def test_register_missing_fields(self):
        response = self.client.post("/api/auth/register", json={"email": "x@test"})
        self.assertEqual(response.status_code, 400)

    @patch("lyz.membership.requests.get")
    def test_superadmin_registration_skips_membership(self, get):
        response = self.client.post(
            "/api/auth/register",
            json={"email": "boss@lyz.test", "password": "pw123456", "name": "Boss", "isSuperadmin": True},
            headers=self.admin_headers(),
        )
        self.assertEqual(response.status_code, 201)
        get.assert_not_called()

        user = User.query.filter_by(email="boss@lyz.test").first()
        self.assertEqual(user.role, "superadmin")
        self.assertIsNone(user.curseduca_id)

    def test_superadmin_registration_requires_name(self):
        response = self.client.post(
            "/api/auth/register",
            json={"email": "boss@lyz.test", "password": "pw123456", "isSuperadmin": True},
            headers=self.admin_headers(),
        )
        self.assertEqual(response.status_code, 400)

    def test_superadmin_registration_needs_superadmin_caller(self):
        response = self.client.post(
            "/api/auth/register",
            json={"email": "boss@lyz.test", "password": "pw123456", "name": "Boss", "isSuperadmin": True},
            headers=self.headers(self.user),
        )
        self.assertEqual(response.status_code, 403)
        self.assertIsNone(User.query.filter_by(email="boss@lyz.test").first())


class LoginTests(ApiTestCase):
    def test_login_success(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": self.user.email, "password": "secret123"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["user"]["email"], self.user.email)
        self.assertEqual(body["user"]["company_id"], self.company.id)

        claims = verify_token(body["accessToken"])
        self.assertEqual(claims["id"], self.user.id)
        self.assertEqual(claims["role"], "user")
        self.assertIsNotNone(db.session.get(User, self.user.id).last_login)

    def test_login_wrong_password(self):
        """Test que una contraseña incorrecta devuelve 401 sin tokens"""
        response = self.client.post(
            "/api/auth/login",
            json={"email": self.user.email, "password": "wrong"},
        )
        self.assertEqual(response.status_code, 401)
        body = response.get_json()
        self.assertNotIn("accessToken", body)
        self.assertNotIn("refreshToken", body)

    def test_login_unknown_email(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "ghost@test", "password": "secret123"},
        )
        self.assertEqual(response.status_code, 401)

    def test_login_missing_fields(self):
        response = self.client.post("/api/auth/login", json={"email": self.user.email})
        self.assertEqual(response.status_code, 400)

    def test_body_that_is_not_an_object(self):
        """Test que un cuerpo JSON que no es un objeto devuelve 400"""
        for path in ("/api/auth/login", "/api/auth/register", "/api/auth/refresh"):
            for body in (["x"], "texto", 42):
                response = self.client.post(path, json=body)
                self.assertEqual(response.status_code, 400, (path, body))


class TokenTests(ApiTestCase):
    def test_refresh_issues_access_token(self):
        token = self.refresh_headers()["Authorization"].split(" ")[1]
        response = self.client.post("/api/auth/refresh", json={"refreshToken": token})
        self.assertEqual(response.status_code, 200)
        claims = verify_token(response.get_json()["accessToken"])
        self.assertEqual(claims["email"], self.user.email)

    def test_refresh_rejects_access_token(self):
        token = self.headers()["Authorization"].split(" ")[1]
        response = self.client.post("/api/auth/refresh", json={"refreshToken": token})
        self.assertEqual(response.status_code, 403)

    def test_refresh_missing(self):
        response = self.client.post("/api/auth/refresh", json={})
        self.assertEqual(response.status_code, 400)

    def test_no_token(self):
        response = self.client.get("/api/plans")
        self.assertEqual(response.status_code, 401)

    def test_garbage_token(self):
        response = self.client.get("/api/plans", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 403)

    def test_refresh_token_is_not_a_bearer_credential(self):
        response = self.client.get("/api/plans", headers=self.refresh_headers())
        self.assertEqual(response.status_code, 403)


class MembershipTests(ApiTestCase):
    @patch("lyz.membership.requests.get")
    def test_failure_classification(self, get):
        from lyz.membership import validate_member

        expected = {400: "bad_request", 401: "unauthorized", 404: "not_found", 500: "error"}
        for status, reason in expected.items():
            get.return_value = member_response(status_code=status)
            result = validate_member("x@test")
            self.assertFalse(result["success"])
            self.assertEqual(result["reason"], reason)

    @patch("lyz.membership.requests.get")
    def test_transport_error_is_generic_failure(self, get):
        from lyz.membership import validate_member

        get.side_effect = requests.ConnectionError("boom")
        result = validate_member("x@test")
        self.assertEqual(result, {
            "success": False,
            "reason": "error",
            "message": "Error validating user in Curseduca",
        })


if __name__ == '__main__':
    unittest.main()
