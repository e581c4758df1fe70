"""Pytest fixtures for backend tests."""

import base64
import json
import time
import uuid
from collections import defaultdict
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from maigewan.core.config import settings
from maigewan.main import create_app
from maigewan.services.pocketbase import AuthStore, PocketBaseClient

PB_URL = "http://pocketbase.test"


def _b64(data: dict) -> str:
    raw = json.dumps(data).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def build_token(record_id: str, expires_in: int = 3600, collection: str = "users") -> str:
    """An unsigned JWT shaped like the ones PocketBase issues."""
    header = _b64({"alg": "HS256", "typ": "JWT"})
    payload = _b64({
        "id": record_id,
        "collectionId": collection,
        "type": "auth",
        "exp": int(time.time()) + expires_in,
    })
    return f"{header}.{payload}.{_b64({'sig': 'unverified'})}"


class FakePocketBase:
    """In-memory stand-in for the PocketBase REST API."""

    def __init__(self):
        self.accounts: dict[tuple[str, str], dict[str, Any]] = {}
        self.tokens: dict[str, dict[str, Any]] = {}
        self.records: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.requests: list[httpx.Request] = []
        self.failing_creates: set[str] = set()
        self.failing_lists: set[str] = set()
        self.unverified: set[str] = set()
        self.create_auth: list[tuple[str, str | None]] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> PocketBaseClient:
        return PocketBaseClient(base_url=PB_URL, transport=self.transport)

    def add_account(
        self,
        email: str,
        password: str,
        role: str = "user",
        collection: str = "users",
        **fields: Any,
    ) -> dict[str, Any]:
        record = {
            "id": uuid.uuid4().hex[:15],
            "collectionName": collection,
            "email": email,
            "role": role,
            "verified": True,
            **fields,
        }
        self.accounts[(collection, email)] = {"password": password, "record": record}
        return record

    def issue_token(self, record: dict[str, Any], expires_in: int = 3600) -> str:
        token = build_token(record["id"], expires_in, record.get("collectionName", "users"))
        self.tokens[token] = record
        return token

    def last_request(self, method: str, path_suffix: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path.endswith(path_suffix):
                return request
        raise AssertionError(f"No {method} request to *{path_suffix}")

    def _error(self, status_code: int, message: str) -> httpx.Response:
        return httpx.Response(status_code, json={"code": status_code, "message": message, "data": {}})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        # /api/collections/{name}/{action}
        if len(parts) < 4 or parts[:2] != ["api", "collections"]:
            return self._error(404, "The requested resource wasn't found.")
        collection, action = parts[2], parts[3]

        if action == "auth-with-password":
            body = json.loads(request.content)
            account = self.accounts.get((collection, body.get("identity")))
            if not account or account["password"] != body.get("password"):
                return self._error(400, "Failed to authenticate.")
            record = account["record"]
            token = self.issue_token(record)
            if record["email"] in self.unverified:
                return httpx.Response(200, json={"token": token})
            return httpx.Response(200, json={"token": token, "record": record})

        if action == "auth-refresh":
            record = self.tokens.get(request.headers.get("Authorization", ""))
            if record is None:
                return self._error(401, "The request requires valid record authorization token.")
            return httpx.Response(200, json={"token": self.issue_token(record), "record": record})

        if action == "records" and request.method == "GET":
            if collection in self.failing_lists:
                return self._error(500, "Something went wrong while processing your request.")
            page = int(request.url.params.get("page", 1))
            per_page = int(request.url.params.get("perPage", 30))
            items = self.records[collection]
            start = (page - 1) * per_page
            return httpx.Response(200, json={
                "page": page,
                "perPage": per_page,
                "totalItems": len(items),
                "totalPages": -(-len(items) // per_page),
                "items": items[start:start + per_page],
            })

        if action == "records" and request.method == "POST":
            if collection in self.failing_creates:
                return self._error(400, "Failed to create record.")
            record = {
                "id": uuid.uuid4().hex[:15],
                "created": "2026-01-01 00:00:00.000Z",
                **json.loads(request.content),
            }
            self.records[collection].append(record)
            self.create_auth.append((collection, request.headers.get("Authorization")))
            return httpx.Response(200, json=record)

        return self._error(404, "The requested resource wasn't found.")


@pytest.fixture
def fake_pb() -> FakePocketBase:
    return FakePocketBase()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep tests independent of any local .env values."""
    monkeypatch.setattr(settings, "POCKETBASE_URL", PB_URL)
    monkeypatch.setattr(settings, "POCKETBASE_SUPERUSER_EMAIL", None)
    monkeypatch.setattr(settings, "POCKETBASE_SUPERUSER_PASSWORD", None)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "DEBUG", True)


@pytest.fixture
def auth_cookie(fake_pb: FakePocketBase):
    """Build a pb_auth cookie value for a fake account."""

    def _cookie(record: dict[str, Any], expires_in: int = 3600) -> str:
        return AuthStore(fake_pb.issue_token(record, expires_in), record).export_cookie_value()

    return _cookie


@pytest.fixture
def test_app(fake_pb: FakePocketBase):
    return create_app(pocketbase_factory=fake_pb.client)


@pytest_asyncio.fixture(scope="function")
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an anonymous test client."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def user_account(fake_pb: FakePocketBase) -> dict[str, Any]:
    return fake_pb.add_account("member@example.com", "memberpass", username="member", name="Member")


@pytest.fixture
def admin_account(fake_pb: FakePocketBase) -> dict[str, Any]:
    return fake_pb.add_account("admin@example.com", "adminpass", role="admin", username="admin", name="Admin")


@pytest_asyncio.fixture(scope="function")
async def user_client(test_app, user_account, auth_cookie) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client signed in as a regular user."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies={settings.AUTH_COOKIE_NAME: auth_cookie(user_account)},
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(test_app, admin_account, auth_cookie) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client signed in as an admin."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies={settings.AUTH_COOKIE_NAME: auth_cookie(admin_account)},
    ) as ac:
        yield ac
