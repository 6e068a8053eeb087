import unittest

from lyz import create_app
from lyz.auth import generate_refresh_token, generate_token
from lyz.config import TestingConfig
from lyz.models import Company, User, db
from lyz.seed import seed_initial_data


class FakeStorage:
    """In-memory stand-in for the S3 object store"""

    def __init__(self):
        self.objects = {}

    def ensure_bucket(self):
        pass

    def upload_bytes(self, key, data, content_type="application/octet-stream"):
        self.objects[key] = (data, content_type)
        return f"s3://test-bucket/{key}"

    def presigned_url(self, key, expires=None):
        return f"https://storage.test/{key}?signature=fake"


class FakeCompletionClient:
    """Records every completion request and answers with a canned reply"""

    def __init__(self, reply="Generated content", tokens=120):
        self.reply = reply
        self.tokens = tokens
        self.error = None
        self.calls = []

    def complete(self, model, system, user, temperature, max_tokens):
        self.calls.append({
            "model": model,
            "system": system,
            "user": user,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error:
            raise self.error
        return self.reply, self.tokens


class ApiTestCase(unittest.TestCase):
    """App with in-memory SQLite, seeded prompts, a superadmin and one clinic user"""

    def setUp(self):
        self.storage = FakeStorage()
        self.llm = FakeCompletionClient()
        self.app = create_app(TestingConfig, storage=self.storage, llm=self.llm)
        self.client = self.app.test_client()

        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

        seed_initial_data()
        self.superadmin = User.query.filter_by(role="superadmin").first()

        self.company = Company(name="Clínica Ciclo", token_limit=10000)
        db.session.add(self.company)
        db.session.commit()
        self.user = self.create_user("pro@clinica.test", company=self.company)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def create_user(self, email, company=None, role="user", password="secret123"):
        company = company or self.company
        user = User(name=email.split("@")[0], email=email, role=role, company_id=company.id)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    def headers(self, user=None):
        return {"Authorization": f"Bearer {generate_token(user or self.user)}"}

    def refresh_headers(self, user=None):
        return {"Authorization": f"Bearer {generate_refresh_token(user or self.user)}"}

    def admin_headers(self):
        return self.headers(self.superadmin)

    def start_plan(self, user=None, patient_data=None, professional_type="medical_nutritionist"):
        response = self.client.post(
            "/api/plans/start",
            json={
                "professional_type": professional_type,
                "patient_data": patient_data or {"name": "Maria", "age": 34},
            },
            headers=self.headers(user),
        )
        self.assertEqual(response.status_code, 201, response.get_json())
        return response.get_json()["plan_id"]
