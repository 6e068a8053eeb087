import pytest
from lyz import create_app
from lyz.config import TestingConfig
from lyz.models import db
from lyz.tests.base import FakeCompletionClient, FakeStorage


@pytest.fixture
def test_app():
    """Fixture para crear la app de testing"""
    app = create_app(TestingConfig, storage=FakeStorage(), llm=FakeCompletionClient())
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(test_app):
    """Fixture para el cliente de testing"""
    return test_app.test_client()
