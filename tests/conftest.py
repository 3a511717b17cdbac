"""Shared fixtures: a fresh SQLite file per test and three registered users."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from delegation_portal_api.app.core.config import settings
from delegation_portal_api.app.core.db import init_db
from delegation_portal_api.app.schemas.user import UserCreate
from delegation_portal_api.app.services.user_service import UserService


def run(coro):
    """Run a service coroutine to completion."""
    return asyncio.run(coro)


def caller_for(user) -> dict:
    return {"sub": user.email, "user_id": user.id, "is_admin": user.is_admin}


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "portal.db"))
    init_db()
    yield tmp_path / "portal.db"


@pytest.fixture
def users():
    """Register an administrator (first user) then two regular users."""
    admin = run(UserService.create_user(UserCreate(email="admin@example.com", password="adminpass1")))
    alice = run(UserService.create_user(UserCreate(email="alice@example.com", password="alicepass1")))
    bob = run(UserService.create_user(UserCreate(email="bob@example.com", password="bobpass123")))
    return {"admin": admin, "alice": alice, "bob": bob}


@pytest.fixture
def admin(users):
    return caller_for(users["admin"])


@pytest.fixture
def alice(users):
    return caller_for(users["alice"])


@pytest.fixture
def bob(users):
    return caller_for(users["bob"])


@pytest.fixture
def client():
    from delegation_portal_api.app.main import app
    return TestClient(app)
