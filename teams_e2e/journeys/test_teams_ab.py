"""
Teams A/B: the future-routes override cookie serves /teams from the app router.
"""
import pytest
from playwright.async_api import expect

from teams_e2e.routing import enable_future_routes

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]


async def test_future_routes_cookie_points_to_future_teams_page(scenario, users, browser):
    await enable_future_routes(browser.context)
    user = await users.create()
    await users.login(user, browser.context)

    await browser.goto("/teams")
    await browser.wait_for_state()

    router = await browser.evaluate(
        "() => window.document.documentElement.getAttribute('data-nextjs-router')"
    )
    assert router == "app"

    await expect(browser.by_role("heading", name="teams")).to_be_visible()
