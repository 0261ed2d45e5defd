"""Fixtures for the harness self-tests: no browser, no application.

The fixture store runs on an in-memory SQLite database with the same tables
the harness writes to in the application's database.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from teams_e2e.runner import ScenarioContext
from teams_e2e.store import FixtureStore, metadata


@pytest.fixture
def sqlite_store():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(engine)
    store = FixtureStore(engine, bcrypt_rounds=4)
    yield store
    engine.dispose()


@pytest.fixture
def context(sqlite_store):
    """A scenario context without a browser."""
    ctx = ScenarioContext("self-test", sqlite_store)
    ctx.users.url = lambda path: "http://app.test" + path
    return ctx


@pytest.fixture
def fake_browser_context():
    """A Playwright BrowserContext stand-in whose login endpoints succeed."""
    csrf_response = MagicMock(ok=True, status=200)
    csrf_response.json = AsyncMock(return_value={"csrfToken": "csrf-token"})
    login_response = MagicMock(ok=True, status=200)

    browser_context = MagicMock()
    browser_context.request.get = AsyncMock(return_value=csrf_response)
    browser_context.request.post = AsyncMock(return_value=login_response)
    browser_context.cookies = AsyncMock(
        return_value=[{"name": "next-auth.session-token", "value": "session"}]
    )
    return browser_context
