import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from kithu.config import Settings, load_settings
from kithu.main import create_app

TEST_SECRET_KEY = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_PASSWORD = "TestPass123!"


def make_settings(**overrides) -> Settings:
    values = {
        "secret_key": TEST_SECRET_KEY,
        "jwt_issuer": "kithu-identity",
        "jwt_audience": "kithu-web",
        "access_token_expire_minutes": 15,
        "refresh_token_expire_days": 7,
        "database_url": "sqlite://",
    }
    values.update(overrides)
    return load_settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def cookie_value(set_cookie_header: str, cookie_name: str) -> str:
    token_part = set_cookie_header.split(";", 1)[0]
    name, value = token_part.split("=", 1)
    assert name == cookie_name
    return value


def signup(client: TestClient, email: str, password: str = TEST_PASSWORD):
    response = client.post("/api/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


def auth_header(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}
