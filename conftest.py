import os

# Settings are read at import time, so the secret must exist before main is imported.
os.environ["JWT_SECRET"] = "test-secret-key-for-bookshelf"

import pytest
from fastapi.testclient import TestClient

from main import app
from store import InMemoryStore, get_store


@pytest.fixture(scope="function")
def store():
    return InMemoryStore()


@pytest.fixture(scope="function")
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(token):
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def register_user(client):
    def _register(email="reader@example.com", password="password123"):
        response = client.post(
            "/api/auth/register",
            json={"email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]
    return _register


@pytest.fixture
def book_data():
    return {
        "title": "Test Book",
        "author": "Test Author",
        "genre": "Fiction",
        "publishedYear": 2023,
    }
