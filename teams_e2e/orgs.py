"""Organization fixtures."""
from __future__ import annotations

import logging
from functools import partial

import anyio

from teams_e2e.errors import ProvisioningError
from teams_e2e.models import MembershipRole, TestOrganization, TestUser
from teams_e2e.naming import unique_slug
from teams_e2e.registry import ResourceRegistry
from teams_e2e.store import FixtureStore

logger = logging.getLogger(__name__)


class OrgFixtures:
    """Creates organizations for one scenario and registers them for teardown."""

    def __init__(self, store: FixtureStore, registry: ResourceRegistry) -> None:
        self.store = store
        self.registry = registry

    async def create(self, name: str = "TestOrg") -> TestOrganization:
        slug = unique_slug(name)
        org_id = await anyio.to_thread.run_sync(
            partial(self.store.create_team, name=name, slug=slug, organization=True)
        )
        organization = self.registry.register_organization(
            TestOrganization(id=org_id, slug=slug, name=name)
        )
        logger.info("Created organization %s (id=%s)", slug, org_id)
        return organization

    def get(self, organization_id: int) -> TestOrganization | None:
        for organization in self.registry.organizations:
            if organization.id == organization_id:
                return organization
        return None

    async def add_member(
        self, organization: TestOrganization, user: TestUser, role: MembershipRole
    ) -> TestUser:
        """Bind an existing user into `organization`.

        A user belongs to at most one organization; binding it to a second one
        raises ProvisioningError.
        """
        if user.organization_id is not None and user.organization_id != organization.id:
            raise ProvisioningError(
                "membership",
                f"{user.username} already belongs to organization {user.organization_id}",
            )
        if user.organization_id == organization.id:
            return user
        await anyio.to_thread.run_sync(
            partial(self.store.add_membership, organization.id, user.id, role)
        )
        await anyio.to_thread.run_sync(
            partial(self.store.set_user_organization, user.id, organization.id)
        )
        user.organization_id = organization.id
        user.role_in_organization = role
        organization.members.append(user)
        return user
