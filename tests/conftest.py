import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from extensions import db


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SESSION_COOKIE_SECURE": False,
        "RATELIMIT_ENABLED": False,
        "TRUST_PROXY": False,
        "ADMIN_USERNAME": "admin",
        "ADMIN_PASSWORD": "Admin#2025",
        "TEACHER_USERNAME": "teacher@school.com",
        "TEACHER_PASSWORD": "Teach#2025",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, role, username, password):
    r = client.post('/auth/login', json={"role": role, "username": username, "password": password})
    assert r.status_code == 200, r.get_json()
    return client


@pytest.fixture
def admin_client(client):
    return _login(client, "admin", "admin", "Admin#2025")


@pytest.fixture
def teacher_client(client):
    return _login(client, "teacher", "teacher@school.com", "Teach#2025")
