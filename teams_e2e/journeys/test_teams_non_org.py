"""
Teams without organizations.

Covers the onboarding wizard (invite, remove, publish, disband), collective and
round-robin bookings, team creation restrictions and private teams.
"""
import re

import pytest
from playwright.async_api import expect

from teams_e2e.assertions import (
    assert_attendee_present,
    assert_booking_title,
    assert_host_among,
    assert_names_visible,
    assert_pending_member_count,
    booking_title,
    check_attendee_set,
    read_booking_outcome,
)
from teams_e2e.booking import (
    TEST_NAME,
    book_time_slot,
    fill_stripe_test_checkout,
    select_first_available_time_slot_next_month,
)
from teams_e2e.config import settings
from teams_e2e.invites import invite_member, remove_latest_invite
from teams_e2e.models import MembershipRole, SchedulingType, TeamOptions
from teams_e2e.naming import slugify, unique_suffix
from teams_e2e.runner import run_scenario

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]

TEAMMATES = [
    {"name": "teammate-1"},
    {"name": "teammate-2"},
    {"name": "teammate-3"},
    {"name": "teammate-4"},
]

PROFILE_URL = re.compile(r"/settings/teams/(\d+)/profile$", re.IGNORECASE)
ONBOARD_URL = re.compile(r"/settings/teams/(\d+)/onboard-members.*$", re.IGNORECASE)

# The owner's own row is always listed among the pending members.
OWNER_ROWS = 1


async def test_team_onboarding_invite_members(scenario, users, invites, browser):
    user = await users.create(team_options=TeamOptions(has_team=True))
    team = (await users.get_first_team_membership(user)).team
    invitee_email = f"{user.username}+invitee@example.com"

    await users.login(user, browser.context)
    await browser.goto(f"/settings/teams/{team.id}/onboard-members")

    async def can_add_members():
        await invite_member(browser, invites, team.id, invitee_email)
        await assert_pending_member_count(browser.page, OWNER_ROWS + invites.pending_count(team.id))
        assert invites.pending_count(team.id) == 1

    async def can_remove_members():
        removed = await remove_latest_invite(browser, invites, team.id)
        assert removed.email == invitee_email
        await expect(browser.by_test_id("remove-member-button")).to_be_hidden()
        await assert_pending_member_count(browser.page, OWNER_ROWS + invites.pending_count(team.id))
        assert invites.pending_count(team.id) == 0

    async def finishing_brings_you_to_team_profile():
        await browser.click("[data-testid=publish-button]")
        await expect(browser.page).to_have_url(PROFILE_URL)

    async def can_disband_team():
        await browser.click(browser.by_text("Disband Team"))
        await browser.click(browser.by_text("Yes, disband team"))
        await browser.wait_for_path("/teams")
        assert await browser.count(f"text={user.username}'s Team") == 0

    report = await run_scenario(
        "Team Onboarding Invite Members",
        [
            ("Can add members", can_add_members),
            ("Can remove members", can_remove_members),
            ("Finishing brings you to team profile page", finishing_brings_you_to_team_profile),
            ("Can disband team", can_disband_team),
        ],
        scenario,
    )
    assert report.passed
    assert scenario.registry.teardown_count == 1


async def test_collective_event_booking(scenario, users, browser):
    owner = await users.create(
        {"username": "pro-user", "name": "pro-user"},
        TeamOptions(has_team=True, teammates=TEAMMATES, scheduling_type=SchedulingType.COLLECTIVE),
    )
    team = (await users.get_first_team_membership(owner)).team
    event = await users.get_first_team_event(team.id)

    await browser.goto(f"/team/{team.slug}/{event.slug}")
    await select_first_available_time_slot_next_month(browser)
    await book_time_slot(browser)
    await expect(browser.by_test_id("success-page")).to_be_visible()

    await assert_booking_title(browser.page, booking_title(event.title, team.name, TEST_NAME))
    await assert_attendee_present(browser.page, TEST_NAME)
    await assert_names_visible(browser.page, [mate["name"] for mate in TEAMMATES])

    outcome = await read_booking_outcome(browser.page)
    check_attendee_set(outcome, [*team.member_names(), TEST_NAME])


async def test_round_robin_event_booking(scenario, users, browser):
    owner = await users.create(
        {"username": "pro-user", "name": "pro-user"},
        TeamOptions(has_team=True, teammates=TEAMMATES, scheduling_type=SchedulingType.ROUND_ROBIN),
    )
    team = (await users.get_first_team_membership(owner)).team
    event = await users.get_first_team_event(team.id)

    await browser.goto(f"/team/{team.slug}/{event.slug}")
    await select_first_available_time_slot_next_month(browser)
    await book_time_slot(browser)
    await expect(browser.by_test_id("success-page")).to_be_visible()

    await assert_attendee_present(browser.page, TEST_NAME)
    await assert_booking_title(browser.page, booking_title(event.title, team.name, TEST_NAME))

    # Every member has the same booking history, so any of them may host.
    candidates = [mate["name"] for mate in TEAMMATES] + [owner.name]
    await assert_host_among(browser.page, candidates)


async def test_non_admin_org_members_cannot_create_team(scenario, users, browser):
    owner = await users.create(
        team_options=TeamOptions(has_team=True, is_org=True, teammates=[{"name": "teammate-1"}])
    )
    org_membership = await users.get_org_membership(owner)
    assert org_membership.role is MembershipRole.OWNER

    member = next(user for user in users.get() if user.name == "teammate-1")
    assert member.organization_id == org_membership.organization.id
    await users.login(member, browser.context)

    await browser.goto("/teams")
    await expect(browser.by_test_id("new-team-btn")).to_be_hidden()
    await expect(browser.by_test_id("create-team-btn")).to_have_attribute("disabled", "")

    team_name = f"test-unique-team-name-{unique_suffix()}"
    scenario.registry.register_team_slug(slugify(team_name))

    await browser.goto("/settings/teams/new")
    await browser.fill('input[name="name"]', team_name)
    await browser.click("[type=submit]")


async def test_can_create_team_with_same_name_as_user(scenario, users, browser):
    user = await users.create()
    unique_name = user.username
    await users.login(user, browser.context)
    await browser.goto("/teams")

    async with scenario.step("Can create team with same name"):
        await browser.click(browser.by_text("Create Team"))
        await browser.wait_for_path("/settings/teams/new")
        scenario.registry.register_team_slug(unique_name)
        await browser.fill('input[name="name"]', unique_name)
        await browser.click("[type=submit]")
        if settings.team_billing_enabled:
            await fill_stripe_test_checkout(browser)
        await browser.wait_for_url(ONBOARD_URL)
        await browser.click("[data-testid=publish-button]")
        await expect(browser.page).to_have_url(PROFILE_URL)

    async with scenario.step("Can access user and team with same slug"):
        team_path = f"/team/{unique_name}"
        await browser.goto(team_path)
        await browser.wait_for_path(team_path)
        await expect(browser.by_test_id("team-name")).to_have_text(unique_name)

        user_path = f"/{unique_name}"
        await browser.goto(user_path)
        await browser.wait_for_path(user_path)
        await expect(browser.by_test_id("name-title")).to_have_text(unique_name)


async def test_can_create_private_team(scenario, users, browser):
    owner = await users.create(
        {"username": "pro-user", "name": "pro-user"},
        TeamOptions(has_team=True, teammates=TEAMMATES, scheduling_type=SchedulingType.COLLECTIVE),
    )
    await users.login(owner, browser.context)
    team = (await users.get_first_team_membership(owner)).team
    privacy_toggle = "[data-testid=make-team-private-check]"

    async with scenario.step("Mark team as private"):
        await browser.goto(f"/settings/teams/{team.id}/members")
        await browser.click(privacy_toggle)
        await expect(browser.locator(f'{privacy_toggle}[data-state="checked"]')).to_be_visible()

    async with scenario.step("Private team hides its members"):
        await browser.goto(f"/team/{team.slug}")
        await expect(browser.by_test_id("book-a-team-member-btn")).to_be_hidden()

        await browser.goto(f"/team/{team.slug}?members=1")
        await expect(browser.by_test_id("you-cannot-see-team-members")).to_be_visible()
        await expect(browser.by_test_id("team-members-container")).to_be_hidden()

    async with scenario.step("Making the team public shows its members again"):
        await browser.goto(f"/settings/teams/{team.id}/members")
        await browser.click(privacy_toggle)
        await expect(browser.locator(f'{privacy_toggle}[data-state="unchecked"]')).to_be_visible()

        await browser.goto(f"/team/{team.slug}")
        await expect(browser.by_test_id("book-a-team-member-btn")).to_be_visible()

        await browser.goto(f"/team/{team.slug}?members=1")
        await expect(browser.by_test_id("you-cannot-see-team-members")).to_be_hidden()
        await expect(browser.by_test_id("team-members-container")).to_be_visible()


@pytest.mark.skip(reason="todo: seed differing least-recently-booked hosts")
async def test_round_robin_with_different_least_recently_booked_hosts():
    pass


@pytest.mark.skip(reason="todo: reschedule flow not covered yet")
async def test_reschedule_collective_booking():
    pass


@pytest.mark.skip(reason="todo: reschedule flow not covered yet")
async def test_reschedule_round_robin_booking():
    pass
