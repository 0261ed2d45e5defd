"""Recurring checks on booking, team and routing pages.

Outcomes the application picks among equally-ranked candidates (the host of
a round-robin booking) are checked by set membership, never by equality.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, List

from playwright.async_api import Page, expect

from teams_e2e.booking import NOT_FOUND_PAGE_TEXT
from teams_e2e.browser import Browser
from teams_e2e.errors import AssertionFailure
from teams_e2e.models import BookingOutcome
from teams_e2e.routing import OrgAddress

ATTENDEE_TEST_ID_PREFIX = "attendee-name-"


@contextmanager
def _page_check(what: str) -> Iterator[None]:
    """Re-raise a failed `expect` as AssertionFailure naming the check."""
    try:
        yield
    except AssertionFailure:
        raise
    except AssertionError as exc:
        raise AssertionFailure(f"{what}: {exc}") from exc


def booking_title(event_title: str, team_name: str, booker_name: str) -> str:
    return f"{event_title} between {team_name} and {booker_name}"


async def assert_booking_title(page: Page, expected_title: str) -> None:
    with _page_check("booking title"):
        await expect(page.get_by_test_id("booking-title")).to_have_text(expected_title)


async def assert_attendee_present(page: Page, name: str) -> None:
    with _page_check(f"attendee {name}"):
        await expect(page.get_by_test_id(f"{ATTENDEE_TEST_ID_PREFIX}{name}")).to_have_text(name)


async def read_booking_outcome(page: Page) -> BookingOutcome:
    """Read title, attendee tiles and host name off the booking success page."""
    with _page_check("booking success page"):
        await expect(page.get_by_test_id("success-page")).to_be_visible()
    title = (await page.get_by_test_id("booking-title").text_content()) or ""
    attendees = await page.locator(f'[data-testid^="{ATTENDEE_TEST_ID_PREFIX}"]').all_text_contents()
    host = (await page.get_by_test_id("booking-host-name").first.text_content()) or ""
    return BookingOutcome(
        title_text=title.strip(),
        attendee_names=frozenset(name.strip() for name in attendees if name.strip()),
        host_name=host.strip(),
    )


def check_host_among(host_name: str | None, candidates: Iterable[str]) -> str:
    candidates = set(candidates)
    if not host_name:
        raise AssertionFailure("booking has no host name")
    if host_name not in candidates:
        raise AssertionFailure(f"host {host_name!r} is not one of {sorted(candidates)}")
    return host_name


async def assert_host_among(page: Page, candidates: Iterable[str]) -> str:
    """The round-robin host must be one of `candidates`; which one is not asserted."""
    host_name = await page.get_by_test_id("booking-host-name").text_content()
    return check_host_among(host_name.strip() if host_name else host_name, candidates)


def check_attendee_set(outcome: BookingOutcome, expected: Iterable[str]) -> None:
    expected = frozenset(expected)
    rendered = outcome.all_names
    missing = expected - rendered
    extra = rendered - expected
    if missing or extra:
        raise AssertionFailure(
            f"attendees differ: missing={sorted(missing)} unexpected={sorted(extra)}"
        )


async def assert_names_visible(page: Page, names: Iterable[str]) -> None:
    for name in names:
        with _page_check(f"name {name} visible"):
            await expect(page.get_by_text(name, exact=True)).to_be_visible()


async def assert_not_found(page: Page) -> None:
    with _page_check("not-found page"):
        await expect(page.locator(f"text={NOT_FOUND_PAGE_TEXT}")).to_be_visible()


async def assert_pending_member_count(page: Page, expected: int) -> None:
    with _page_check(f"{expected} pending member(s)"):
        await expect(page.get_by_test_id("pending-member-item")).to_have_count(expected)


async def pending_member_count(page: Page) -> int:
    return await page.get_by_test_id("pending-member-item").count()


def _mixed_case(slug: str) -> str:
    return "".join(ch.upper() if i % 2 == 0 else ch.lower() for i, ch in enumerate(slug))


_CASINGS = (str.upper, str.lower, _mixed_case)


def slug_case_variants(slug: str) -> List[str]:
    """Upper, lower and mixed-case spellings of a slug, without duplicates."""
    variants: List[str] = []
    for variant in (casing(slug) for casing in _CASINGS):
        if variant not in variants:
            variants.append(variant)
    return variants


async def assert_slug_resolves_case_insensitively(
    browser: Browser, org_slug: str, team_slug: str, event_slug: str
) -> str:
    """Every casing of team/event slug under the org path opens the same booker.

    Returns the event title all variants rendered.
    """
    address = OrgAddress(org_slug=org_slug, form="path")
    titles = set()
    for variant in slug_case_variants(f"{team_slug}/{event_slug}"):
        await browser.goto(address.url(f"/{variant}"))
        await browser.wait_for_selector("[data-testid=day]")
        titles.add(((await browser.text(browser.by_test_id("event-title"))) or "").strip())
    if len(titles) != 1:
        raise AssertionFailure(f"slug casings resolved to different events: {sorted(titles)}")
    return titles.pop()
