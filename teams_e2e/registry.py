"""Tracks every fixture a scenario creates and deletes them afterwards."""
from __future__ import annotations

import logging
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError

from teams_e2e.errors import TeardownError
from teams_e2e.models import TestOrganization, TestTeam, TestUser
from teams_e2e.store import FixtureStore

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """Owns the lifecycle of the users, teams and organizations of one scenario.

    `teardown_all()` deletes in a fixed order:
        organizations (with their sub-teams and memberships)
        standalone teams, by id and then by slug
        users, by id and then by e-mail
    Organizations go first because team and user rows may still be referenced
    by them. A failed delete is logged and recorded in `errors`; the rest of
    the teardown still runs.
    """

    def __init__(self, store: FixtureStore) -> None:
        self.store = store
        self.organizations: List[TestOrganization] = []
        self.teams: List[TestTeam] = []
        self.team_slugs: List[str] = []
        self.users: List[TestUser] = []
        self.emails: List[str] = []
        self.errors: List[TeardownError] = []
        self.teardown_count = 0

    # ---- registration ----------------------------------------------------------
    def register_organization(self, organization: TestOrganization) -> TestOrganization:
        self.organizations.append(organization)
        return organization

    def register_team(self, team: TestTeam) -> TestTeam:
        self.teams.append(team)
        return team

    def register_team_slug(self, slug: str) -> None:
        """Register a team the application creates (e.g. through the wizard)."""
        if slug not in self.team_slugs:
            self.team_slugs.append(slug)

    def register_user(self, user: TestUser) -> TestUser:
        self.users.append(user)
        return user

    def register_email(self, email: str) -> None:
        """Register a user the application creates as a side effect (invitees)."""
        if email not in self.emails:
            self.emails.append(email)

    @property
    def is_empty(self) -> bool:
        return not (self.organizations or self.teams or self.team_slugs or self.users or self.emails)

    # ---- teardown --------------------------------------------------------------
    def _attempt(self, kind: str, target, action: Callable[[], object]) -> None:
        try:
            action()
        except SQLAlchemyError as exc:
            error = TeardownError(kind=kind, target=target, cause=exc)
            self.errors.append(error)
            logger.warning("%s", error)

    def teardown_all(self) -> None:
        """Delete everything registered so far. Safe to call on an empty registry."""
        self.teardown_count += 1
        if self.is_empty:
            logger.debug("Teardown: nothing registered")
            return

        organizations, self.organizations = self.organizations, []
        teams, self.teams = self.teams, []
        team_slugs, self.team_slugs = self.team_slugs, []
        users, self.users = self.users, []
        emails, self.emails = self.emails, []

        for organization in organizations:
            self._attempt(
                "organization",
                organization.slug,
                lambda org_id=organization.id: self.store.delete_organization(org_id),
            )

        # Sub-teams of an organization are already gone with it.
        org_ids = {organization.id for organization in organizations}
        standalone = [team.id for team in teams if team.parent_id not in org_ids]
        if standalone:
            self._attempt("team", standalone, lambda: self.store.delete_teams(standalone))
        for slug in team_slugs:
            self._attempt("team", slug, lambda slug=slug: self.store.delete_teams_by_slug(slug))

        user_ids = [user.id for user in users]
        if user_ids:
            self._attempt("user", user_ids, lambda: self.store.delete_users(user_ids))
        if emails:
            self._attempt("user", emails, lambda: self.store.delete_users_by_email(emails))

        logger.info(
            "Teardown removed %d organization(s), %d team(s), %d user(s), %d invitee(s); %d error(s)",
            len(organizations),
            len(standalone) + len(team_slugs),
            len(user_ids),
            len(emails),
            len(self.errors),
        )
