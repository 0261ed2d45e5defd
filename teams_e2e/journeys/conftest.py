"""
Fixtures for the team journeys.

Journeys need a running application at E2E_BASE_URL and its database at
DATABASE_URL. When either is unreachable the journeys are skipped, not
failed; the harness self-tests in teams_e2e/tests run without them.
"""
import httpx
import pytest
from playwright.async_api import expect
from sqlalchemy.exc import SQLAlchemyError

from teams_e2e.config import settings


@pytest.fixture(scope="session")
def application_reachable() -> bool:
    try:
        with httpx.Client(timeout=10.0, follow_redirects=True) as client:
            client.get(settings.url("/"))
    except httpx.HTTPError:
        return False
    return True


@pytest.fixture(scope="session")
def database_reachable(fixture_store) -> bool:
    try:
        fixture_store.ping()
    except SQLAlchemyError:
        return False
    return True


@pytest.fixture(autouse=True)
def require_application(application_reachable, database_reachable):
    if not application_reachable:
        pytest.skip(f"Application not reachable at {settings.base_url} - start it or set E2E_BASE_URL")
    if not database_reachable:
        pytest.skip("Application database not reachable - check DATABASE_URL")
    expect.set_options(timeout=settings.expect_timeout_ms)
