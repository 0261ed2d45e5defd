import logging

import pytest
import pytest_asyncio

from teams_e2e.browser import Browser
from teams_e2e.config import settings
from teams_e2e.playwright_client import PlaywrightClient
from teams_e2e.runner import ScenarioContext
from teams_e2e.store import FixtureStore

logging.getLogger("teams_e2e").setLevel(logging.INFO)


@pytest.fixture(scope="session")
def fixture_store():
    """One engine per worker process against the application's database."""
    store = FixtureStore.from_url(settings.database_url)
    yield store
    store.dispose()


@pytest_asyncio.fixture()
async def playwright_client():
    """Create a Playwright client instance."""
    async with PlaywrightClient() as client:
        yield client


@pytest_asyncio.fixture()
async def browser(playwright_client):
    """A Browser on a fresh, isolated context (cookies and headers included)."""
    context = await playwright_client.new_context()
    page = await context.new_page()
    yield Browser(page)
    await context.close()


@pytest_asyncio.fixture()
async def scenario(request, fixture_store, browser):
    """Per-scenario fixture context.

    Every user, team and organization created through it is deleted when the
    test ends, whether it passed or failed.
    """
    context = ScenarioContext(request.node.name, fixture_store, browser)
    try:
        yield context
    finally:
        await context.close()


@pytest.fixture
def users(scenario):
    return scenario.users


@pytest.fixture
def orgs(scenario):
    return scenario.orgs


@pytest.fixture
def invites(scenario):
    return scenario.invites
