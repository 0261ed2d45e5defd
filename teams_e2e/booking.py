"""Booker and checkout interactions shared by the booking scenarios."""
from __future__ import annotations

from teams_e2e.browser import Browser

TEST_NAME = "Test Testson"
TEST_EMAIL = "test@example.com"
NOT_FOUND_PAGE_TEXT = "ERROR 404"

STRIPE_TEST_CARD = {
    "[name=cardNumber]": "4242424242424242",
    "[name=cardExpiry]": "12/30",
    "[name=cardCvc]": "111",
    "[name=billingName]": "Stripe Stripeson",
    "[name=billingPostalCode]": "12345",
}


async def select_first_available_time_slot_next_month(browser: Browser) -> None:
    """Move the booker to next month and pick its first open day and time."""
    await browser.click(browser.by_test_id("incrementMonth"))
    await browser.click(browser.locator('[data-testid="day"][data-disabled="false"]').nth(0))
    await browser.click(browser.locator('[data-testid="time"]').nth(0))


async def book_time_slot(browser: Browser, name: str = TEST_NAME, email: str = TEST_EMAIL) -> None:
    """Fill the booking form and submit it with Enter."""
    await browser.fill('[name="name"]', name)
    await browser.fill('[name="email"]', email)
    await browser.press('[name="email"]', "Enter")


async def fill_stripe_test_checkout(browser: Browser) -> None:
    """Pay on Stripe's hosted checkout with the standard test card."""
    for selector, value in STRIPE_TEST_CARD.items():
        await browser.fill(selector, value)
    await browser.select("[name=billingCountry]", "US")
    await browser.click(".SubmitButton--complete-Shimmer")
