"""Fixture records created by the harness and outcomes it observes."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, TypedDict


class SchedulingType(enum.Enum):
    """How a team event assigns hosts. Values are the stored column values."""

    COLLECTIVE = "collective"
    ROUND_ROBIN = "roundRobin"


class MembershipRole(enum.Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class InviteStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REMOVED = "removed"


class Teammate(TypedDict):
    name: str


@dataclass
class TestUser:
    """A user account written straight to the database for one scenario."""

    __test__ = False

    id: int
    username: str
    name: str
    email: str
    password: str
    organization_id: Optional[int] = None
    role_in_organization: Optional[MembershipRole] = None

    def __repr__(self) -> str:
        return f"TestUser(id={self.id}, username={self.username})"


@dataclass
class TestTeam:
    """A team, or an organization-scoped sub-team when parent_id is set."""

    __test__ = False

    id: int
    slug: str
    name: str
    members: List[TestUser]
    scheduling_type: Optional[SchedulingType] = None
    is_private: bool = False
    parent_id: Optional[int] = None

    @property
    def owner(self) -> TestUser:
        return self.members[0]

    def member_names(self) -> List[str]:
        return [member.name for member in self.members]


@dataclass
class TestOrganization:
    """An organization: the namespace for its teams' slugs and routes."""

    __test__ = False

    id: int
    slug: str
    name: str
    teams: List[TestTeam] = field(default_factory=list)
    members: List[TestUser] = field(default_factory=list)


@dataclass
class TestEventType:
    __test__ = False

    id: int
    title: str
    slug: str
    team_id: Optional[int]
    scheduling_type: Optional[SchedulingType]
    length: int = 30


@dataclass
class TeamOptions:
    """What `UserFixtures.create` should build around the new user.

    `is_org` turns the created team into an organization owned by the user.
    """

    has_team: bool = False
    is_org: bool = False
    teammates: List[Teammate] = field(default_factory=list)
    scheduling_type: SchedulingType = SchedulingType.COLLECTIVE
    is_private: bool = False


@dataclass
class PendingInvite:
    email: str
    team_id: int
    status: InviteStatus = InviteStatus.PENDING


@dataclass(frozen=True)
class BookingOutcome:
    """What the booking success page rendered. Read, never owned."""

    title_text: str
    attendee_names: FrozenSet[str]
    host_name: str

    @property
    def all_names(self) -> FrozenSet[str]:
        return self.attendee_names | {self.host_name}
