import os

# Must be set before jpsentence.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["DEBUG_ENDPOINTS"] = "true"
os.environ.pop("LOG_DIR", None)

import pytest
from fastapi.testclient import TestClient

from jpsentence.db import Base, engine
from jpsentence.main import app


@pytest.fixture()
def client():
	Base.metadata.drop_all(bind=engine)
	with TestClient(app) as c:
		yield c
	Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def make_user(client):
	def _make(username: str = "taro", email: str = "taro@example.com", password: str = "himitsu123") -> dict:
		rv = client.post("/api/register", json={"username": username, "email": email, "password": password})
		assert rv.status_code == 200, rv.text
		rv = client.post("/api/login", json={"email": email, "password": password})
		assert rv.status_code == 200, rv.text
		return {"Authorization": f"Bearer {rv.json()['token']}"}
	return _make


@pytest.fixture()
def auth_headers(make_user):
	return make_user()
