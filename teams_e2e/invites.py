"""Pending-invite bookkeeping and the onboarding invite actions."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from playwright.async_api import expect

from teams_e2e.browser import Browser
from teams_e2e.models import InviteStatus, PendingInvite
from teams_e2e.registry import ResourceRegistry

logger = logging.getLogger(__name__)

INVITE_EMAIL_PLACEHOLDER = "email@example.com"


class InviteLedger:
    """Invites issued during one scenario, per team.

    An invite goes PENDING -> REMOVED or PENDING -> ACCEPTED and never back.
    Every invited e-mail is registered for teardown, because the application
    creates a user row for it.
    """

    def __init__(self, registry: ResourceRegistry) -> None:
        self.registry = registry
        self._invites: Dict[int, List[PendingInvite]] = {}

    def invite(self, email: str, team_id: int) -> PendingInvite:
        for existing in self._invites.get(team_id, []):
            if existing.email == email and existing.status is InviteStatus.PENDING:
                raise ValueError(f"{email} already has a pending invite to team {team_id}")
        invite = PendingInvite(email=email, team_id=team_id)
        self._invites.setdefault(team_id, []).append(invite)
        self.registry.register_email(email)
        return invite

    def _transition(self, invite: PendingInvite, status: InviteStatus) -> PendingInvite:
        if invite.status is not InviteStatus.PENDING:
            raise ValueError(f"invite for {invite.email} is {invite.status.value}, not pending")
        invite.status = status
        return invite

    def find(self, email: str, team_id: int) -> Optional[PendingInvite]:
        for invite in self._invites.get(team_id, []):
            if invite.email == email and invite.status is InviteStatus.PENDING:
                return invite
        return None

    def remove(self, email: str, team_id: int) -> PendingInvite:
        invite = self.find(email, team_id)
        if invite is None:
            raise KeyError(f"no pending invite for {email} in team {team_id}")
        return self._transition(invite, InviteStatus.REMOVED)

    def remove_latest(self, team_id: int) -> PendingInvite:
        pending = self.pending(team_id)
        if not pending:
            raise KeyError(f"no pending invites in team {team_id}")
        return self._transition(pending[-1], InviteStatus.REMOVED)

    def accept(self, email: str, team_id: int) -> PendingInvite:
        invite = self.find(email, team_id)
        if invite is None:
            raise KeyError(f"no pending invite for {email} in team {team_id}")
        return self._transition(invite, InviteStatus.ACCEPTED)

    def pending(self, team_id: int) -> List[PendingInvite]:
        return [i for i in self._invites.get(team_id, []) if i.status is InviteStatus.PENDING]

    def pending_count(self, team_id: int) -> int:
        return len(self.pending(team_id))


async def invite_member(browser: Browser, ledger: InviteLedger, team_id: int, email: str) -> PendingInvite:
    """Invite `email` from the onboarding members page and wait for its row."""
    invite = ledger.invite(email, team_id)
    await browser.click(browser.by_test_id("new-member-button"))
    await browser.fill(browser.by_placeholder(INVITE_EMAIL_PLACEHOLDER), email)
    await browser.click(browser.by_test_id("invite-new-member-button"))
    await expect(browser.locator(f'li:has-text("{email}")')).to_be_visible()
    logger.debug("Invited %s to team %s", email, team_id)
    return invite


async def remove_latest_invite(browser: Browser, ledger: InviteLedger, team_id: int) -> PendingInvite:
    """Remove the most recent pending member row and wait for the request to settle."""
    button = browser.by_test_id("remove-member-button").last
    await browser.click(button)
    await browser.wait_for_state("networkidle")
    return ledger.remove_latest(team_id)
