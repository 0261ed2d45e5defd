"""User fixtures and authenticated browser sessions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import anyio
from playwright.async_api import BrowserContext

from teams_e2e.config import settings
from teams_e2e.errors import ProvisioningError
from teams_e2e.models import (
    MembershipRole,
    SchedulingType,
    TeamOptions,
    TestEventType,
    TestOrganization,
    TestTeam,
    TestUser,
)
from teams_e2e.naming import slugify, unique_suffix
from teams_e2e.orgs import OrgFixtures
from teams_e2e.registry import ResourceRegistry
from teams_e2e.store import FixtureStore, is_organization

logger = logging.getLogger(__name__)

SESSION_COOKIE_MARKER = "session-token"

_EVENT_TITLES = {
    SchedulingType.COLLECTIVE: ("Team Event - Collective", "team-event-collective"),
    SchedulingType.ROUND_ROBIN: ("Team Event - Round Robin", "team-event-round-robin"),
}


@dataclass
class AuthenticatedSession:
    user: TestUser
    context: BrowserContext


@dataclass
class TeamMembership:
    role: MembershipRole
    accepted: bool
    team: TestTeam


@dataclass
class OrgMembership:
    role: MembershipRole
    organization: TestOrganization


class UserFixtures:
    """Creates users (and optionally their team) for one scenario.

    Usage:
        owner = await users.create(
            {"username": "pro-user", "name": "pro-user"},
            TeamOptions(has_team=True, teammates=[{"name": "teammate-1"}]),
        )
        await users.login(owner, context)
    """

    def __init__(
        self,
        store: FixtureStore,
        registry: ResourceRegistry,
        orgs: OrgFixtures,
        url: Callable[[str], str] = settings.url,
    ) -> None:
        self.store = store
        self.registry = registry
        self.orgs = orgs
        self.url = url
        self._teams: Dict[int, TestTeam] = {}
        self._sessions: Dict[Tuple[int, int], AuthenticatedSession] = {}

    async def _run(self, func, *args, **kwargs):
        return await anyio.to_thread.run_sync(partial(func, *args, **kwargs))

    async def _create_one(
        self,
        prefix: str,
        name: Optional[str],
        email: Optional[str],
        organization_id: Optional[int],
        role: Optional[MembershipRole],
    ) -> TestUser:
        username = f"{slugify(prefix)}-{unique_suffix()}"
        email = email or f"{username}@example.com"
        user_id = await self._run(
            self.store.create_user,
            username=username,
            name=name or username,
            email=email,
            password=username,
            organization_id=organization_id,
        )
        user = self.registry.register_user(
            TestUser(
                id=user_id,
                username=username,
                name=name or username,
                email=email,
                password=username,
            )
        )
        if organization_id is not None:
            organization = self.orgs.get(organization_id)
            if organization is not None:
                await self.orgs.add_member(organization, user, role or MembershipRole.MEMBER)
            else:
                await self._run(self.store.add_membership, organization_id, user_id, role or MembershipRole.MEMBER)
                user.organization_id = organization_id
                user.role_in_organization = role or MembershipRole.MEMBER
        return user

    async def create(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        team_options: Optional[TeamOptions] = None,
    ) -> TestUser:
        """Create a user, and with `team_options.has_team` its team and teammates.

        `overrides` accepts username (slugified, then used as a prefix), name, email,
        organization_id and role_in_organization.
        """
        overrides = dict(overrides or {})
        team_options = team_options or TeamOptions()
        organization_id: Optional[int] = overrides.get("organization_id")
        role: Optional[MembershipRole] = overrides.get("role_in_organization")

        if role is not None and organization_id is None:
            raise ProvisioningError("user", "role_in_organization requires organization_id")
        if team_options.is_org and organization_id is not None:
            raise ProvisioningError("user", "a user cannot belong to two organizations")
        if team_options.is_org and not team_options.has_team:
            raise ProvisioningError("user", "is_org needs has_team; the organization is the user's team")

        user = await self._create_one(
            prefix=overrides.get("username") or "user",
            name=overrides.get("name"),
            email=overrides.get("email"),
            organization_id=organization_id,
            role=role,
        )
        logger.info("Created user %s (id=%s)", user.username, user.id)

        if team_options.has_team:
            teammates = [
                await self._create_one(
                    prefix="teammate",
                    name=mate["name"],
                    email=None,
                    organization_id=organization_id,
                    role=MembershipRole.MEMBER if organization_id is not None else None,
                )
                for mate in team_options.teammates
            ]
            if team_options.is_org:
                await self._create_owned_organization(user, teammates)
            else:
                await self._create_team(user, teammates, team_options, organization_id)
        return user

    async def _create_owned_organization(self, owner: TestUser, teammates: List[TestUser]) -> None:
        organization = await self.orgs.create(name=f"{owner.username}'s Org")
        await self.orgs.add_member(organization, owner, MembershipRole.OWNER)
        for mate in teammates:
            await self.orgs.add_member(organization, mate, MembershipRole.MEMBER)

    async def _create_team(
        self,
        owner: TestUser,
        teammates: List[TestUser],
        team_options: TeamOptions,
        organization_id: Optional[int],
    ) -> TestTeam:
        name = f"{owner.username}'s Team"
        slug = f"{owner.username}-team"
        team_id = await self._run(
            self.store.create_team,
            name=name,
            slug=slug,
            parent_id=organization_id,
            is_private=team_options.is_private,
        )
        team = self.registry.register_team(
            TestTeam(
                id=team_id,
                slug=slug,
                name=name,
                members=[owner, *teammates],
                scheduling_type=team_options.scheduling_type,
                is_private=team_options.is_private,
                parent_id=organization_id,
            )
        )
        self._teams[team_id] = team
        if organization_id is not None:
            organization = self.orgs.get(organization_id)
            if organization is not None:
                organization.teams.append(team)

        await self._run(self.store.add_membership, team_id, owner.id, MembershipRole.OWNER)
        for mate in teammates:
            await self._run(self.store.add_membership, team_id, mate.id, MembershipRole.MEMBER)

        title, event_slug = _EVENT_TITLES[team_options.scheduling_type]
        await self._run(
            self.store.create_team_event,
            team_id=team_id,
            title=title,
            slug=event_slug,
            scheduling_type=team_options.scheduling_type,
            host_ids=[member.id for member in team.members],
        )
        logger.info("Created team %s with %d member(s)", slug, len(team.members))
        return team

    def get(self) -> List[TestUser]:
        """Every user created in this scenario, teammates included."""
        return list(self.registry.users)

    # ---- read-backs ------------------------------------------------------------
    def _team_from_row(self, user: TestUser, team: Dict[str, Any]) -> TestTeam:
        known = self._teams.get(team["id"])
        if known is not None:
            return known
        return TestTeam(
            id=team["id"],
            slug=team["slug"],
            name=team["name"],
            members=[user],
            parent_id=team["parentId"],
        )

    async def get_first_team_membership(self, user: TestUser) -> TeamMembership:
        rows = await self._run(self.store.memberships_of, user.id)
        for row in rows:
            if not is_organization(row.team["metadata"]):
                return TeamMembership(row.role, row.accepted, self._team_from_row(user, row.team))
        raise ProvisioningError("membership", f"{user.username} has no team membership")

    async def get_org_membership(self, user: TestUser) -> OrgMembership:
        rows = await self._run(self.store.memberships_of, user.id)
        for row in rows:
            if is_organization(row.team["metadata"]):
                organization = self.orgs.get(row.team_id) or TestOrganization(
                    id=row.team_id, slug=row.team["slug"], name=row.team["name"]
                )
                return OrgMembership(row.role, organization)
        raise ProvisioningError("membership", f"{user.username} has no organization membership")

    async def get_first_team_event(self, team_id: int) -> TestEventType:
        row = await self._run(self.store.first_event_of_team, team_id)
        if row is None:
            raise ProvisioningError("event type", f"team {team_id} has no event types")
        scheduling_type = row.get("schedulingType")
        return TestEventType(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            team_id=row["teamId"],
            scheduling_type=SchedulingType(scheduling_type) if scheduling_type else None,
            length=row["length"],
        )

    # ---- sessions --------------------------------------------------------------
    async def login(self, user: TestUser, context: BrowserContext) -> AuthenticatedSession:
        """Log `user` in on `context` through the credentials endpoint.

        Cookies land in the context, so every page of it is authenticated.
        Logging the same user in twice on one context is a no-op.
        """
        key = (id(context), user.id)
        if key in self._sessions:
            return self._sessions[key]

        request = context.request
        csrf_response = await request.get(self.url("/api/auth/csrf"))
        if not csrf_response.ok:
            raise ProvisioningError("session", f"CSRF token request failed with HTTP {csrf_response.status}")
        csrf_token = (await csrf_response.json()).get("csrfToken")
        if not csrf_token:
            raise ProvisioningError("session", "CSRF response carried no token")

        response = await request.post(
            self.url("/api/auth/callback/credentials"),
            form={
                "email": user.email,
                "password": user.password,
                "csrfToken": csrf_token,
                "callbackUrl": self.url("/"),
                "redirect": "false",
                "json": "true",
            },
        )
        if not response.ok:
            raise ProvisioningError("session", f"login for {user.username} failed with HTTP {response.status}")

        cookies = await context.cookies()
        if not any(SESSION_COOKIE_MARKER in cookie["name"] for cookie in cookies):
            raise ProvisioningError("session", f"no session cookie was set for {user.username}")

        session = AuthenticatedSession(user=user, context=context)
        self._sessions[key] = session
        logger.debug("Logged in %s", user.username)
        return session
