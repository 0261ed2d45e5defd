"""Direct database access for fixtures.

The harness never goes through the application to create its fixtures: users,
teams, organizations, memberships and team event types are inserted here, and
every one of them is deleted here again at teardown. Only the columns the
harness needs are declared; everything else keeps the application's defaults.

Table and column names follow the application's schema (quoted, camelCase).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import bcrypt
from sqlalchemy import (
    ARRAY,
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Time,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from teams_e2e.errors import ProvisioningError
from teams_e2e.models import MembershipRole, SchedulingType

logger = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "Europe/London"
# Monday to Friday, 09:00-17:00
DEFAULT_AVAILABILITY_DAYS = [1, 2, 3, 4, 5]
DEFAULT_START_TIME = time(9, 0)
DEFAULT_END_TIME = time(17, 0)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String, unique=True),
    Column("name", String),
    Column("email", String, unique=True, nullable=False),
    Column("password", String),
    Column("emailVerified", DateTime),
    Column("completedOnboarding", Boolean, default=True),
    Column("timeZone", String, default=DEFAULT_TIME_ZONE),
    Column("organizationId", Integer, ForeignKey("Team.id", ondelete="SET NULL")),
    Column("defaultScheduleId", Integer),
)

teams = Table(
    "Team",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("slug", String),
    Column("isPrivate", Boolean, default=False),
    Column("parentId", Integer, ForeignKey("Team.id", ondelete="CASCADE")),
    Column("metadata", JSON().with_variant(JSONB(), "postgresql")),
)

memberships = Table(
    "Membership",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("teamId", Integer, ForeignKey("Team.id", ondelete="CASCADE"), nullable=False),
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("accepted", Boolean, default=False),
    Column("role", String, nullable=False),
)

event_types = Table(
    "EventType",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String, nullable=False),
    Column("slug", String, nullable=False),
    Column("length", Integer, nullable=False),
    Column("teamId", Integer, ForeignKey("Team.id", ondelete="CASCADE")),
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE")),
    Column("schedulingType", String),
)

hosts = Table(
    "Host",
    metadata,
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("eventTypeId", Integer, ForeignKey("EventType.id", ondelete="CASCADE"), primary_key=True),
    Column("isFixed", Boolean, default=False),
)

user_event_types = Table(
    "_user_eventtype",
    metadata,
    Column("A", Integer, ForeignKey("EventType.id", ondelete="CASCADE"), primary_key=True),
    Column("B", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

schedules = Table(
    "Schedule",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("timeZone", String),
)

availabilities = Table(
    "Availability",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("scheduleId", Integer, ForeignKey("Schedule.id", ondelete="CASCADE")),
    Column("days", ARRAY(Integer).with_variant(JSON(), "sqlite")),
    Column("startTime", Time, nullable=False),
    Column("endTime", Time, nullable=False),
)

ORGANIZATION_METADATA = {
    "isOrganization": True,
    "isOrganizationVerified": True,
    "isOrganizationConfigured": True,
    "orgAutoAcceptEmail": "example.com",
}


def is_organization(team_metadata: Any) -> bool:
    return isinstance(team_metadata, dict) and bool(team_metadata.get("isOrganization"))


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


@dataclass
class MembershipRow:
    team_id: int
    user_id: int
    role: MembershipRole
    accepted: bool
    team: Dict[str, Any]


class FixtureStore:
    """Inserts and deletes fixture rows.

    Every create runs in its own transaction. Creates wrap database errors in
    ProvisioningError; deletes let SQLAlchemyError propagate so the registry
    can record them as teardown failures.
    """

    def __init__(self, engine: Engine, bcrypt_rounds: int = 12) -> None:
        self.engine = engine
        self.bcrypt_rounds = bcrypt_rounds

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "FixtureStore":
        engine = create_engine(database_url, pool_pre_ping=True)
        return cls(engine, **kwargs)

    def ping(self) -> None:
        """Open and close one connection; raises if the database is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(select(1))

    def dispose(self) -> None:
        self.engine.dispose()

    # ---- creates ---------------------------------------------------------------
    def create_user(
        self,
        username: str,
        name: str,
        email: str,
        password: str,
        organization_id: Optional[int] = None,
    ) -> int:
        try:
            with self.engine.begin() as conn:
                user_id = conn.execute(
                    users.insert().values(
                        username=username,
                        name=name,
                        email=email,
                        password=hash_password(password, self.bcrypt_rounds),
                        emailVerified=datetime.now(timezone.utc),
                        completedOnboarding=True,
                        timeZone=DEFAULT_TIME_ZONE,
                        organizationId=organization_id,
                    )
                ).inserted_primary_key[0]
                schedule_id = conn.execute(
                    schedules.insert().values(
                        userId=user_id, name="Working Hours", timeZone=DEFAULT_TIME_ZONE
                    )
                ).inserted_primary_key[0]
                conn.execute(
                    availabilities.insert().values(
                        scheduleId=schedule_id,
                        days=DEFAULT_AVAILABILITY_DAYS,
                        startTime=DEFAULT_START_TIME,
                        endTime=DEFAULT_END_TIME,
                    )
                )
                conn.execute(
                    update(users).where(users.c.id == user_id).values(defaultScheduleId=schedule_id)
                )
        except IntegrityError as exc:
            raise ProvisioningError("user", f"{username}/{email} already exists ({exc.orig})") from exc
        except SQLAlchemyError as exc:
            raise ProvisioningError("user", str(exc)) from exc
        logger.debug("Created user %s (id=%s)", username, user_id)
        return user_id

    def create_team(
        self,
        name: str,
        slug: str,
        parent_id: Optional[int] = None,
        is_private: bool = False,
        organization: bool = False,
    ) -> int:
        values: Dict[str, Any] = {
            "name": name,
            "slug": slug,
            "isPrivate": is_private,
            "parentId": parent_id,
            "metadata": dict(ORGANIZATION_METADATA) if organization else {},
        }
        kind = "organization" if organization else "team"
        try:
            with self.engine.begin() as conn:
                scope = teams.c.parentId == parent_id if parent_id is not None else teams.c.parentId.is_(None)
                clash = conn.execute(
                    select(teams.c.id).where(teams.c.slug == slug).where(scope)
                ).first()
                if clash is not None:
                    raise ProvisioningError(kind, f"slug {slug!r} is taken in its scope")
                team_id = conn.execute(teams.insert().values(**values)).inserted_primary_key[0]
        except SQLAlchemyError as exc:
            raise ProvisioningError(kind, str(exc)) from exc
        logger.debug("Created %s %s (id=%s)", kind, slug, team_id)
        return team_id

    def add_membership(
        self, team_id: int, user_id: int, role: MembershipRole, accepted: bool = True
    ) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    memberships.insert().values(
                        teamId=team_id, userId=user_id, role=role.value, accepted=accepted
                    )
                )
        except SQLAlchemyError as exc:
            raise ProvisioningError("membership", str(exc)) from exc

    def set_user_organization(self, user_id: int, organization_id: int) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    update(users).where(users.c.id == user_id).values(organizationId=organization_id)
                )
        except SQLAlchemyError as exc:
            raise ProvisioningError("user", str(exc)) from exc

    def create_team_event(
        self,
        team_id: int,
        title: str,
        slug: str,
        scheduling_type: SchedulingType,
        host_ids: Sequence[int],
        length: int = 30,
    ) -> int:
        try:
            with self.engine.begin() as conn:
                event_type_id = conn.execute(
                    event_types.insert().values(
                        title=title,
                        slug=slug,
                        length=length,
                        teamId=team_id,
                        schedulingType=scheduling_type.value,
                    )
                ).inserted_primary_key[0]
                is_fixed = scheduling_type is SchedulingType.COLLECTIVE
                for user_id in host_ids:
                    conn.execute(
                        hosts.insert().values(userId=user_id, eventTypeId=event_type_id, isFixed=is_fixed)
                    )
                    conn.execute(user_event_types.insert().values(A=event_type_id, B=user_id))
        except SQLAlchemyError as exc:
            raise ProvisioningError("event type", str(exc)) from exc
        return event_type_id

    # ---- reads -----------------------------------------------------------------
    def memberships_of(self, user_id: int) -> List[MembershipRow]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(memberships, teams.c.name, teams.c.slug, teams.c.parentId, teams.c["metadata"])
                .join(teams, teams.c.id == memberships.c.teamId)
                .where(memberships.c.userId == user_id)
                .order_by(memberships.c.id)
            ).mappings().all()
        return [
            MembershipRow(
                team_id=row["teamId"],
                user_id=row["userId"],
                role=MembershipRole(row["role"]),
                accepted=bool(row["accepted"]),
                team={
                    "id": row["teamId"],
                    "name": row["name"],
                    "slug": row["slug"],
                    "parentId": row["parentId"],
                    "metadata": row["metadata"] or {},
                },
            )
            for row in rows
        ]

    def first_event_of_team(self, team_id: int) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(event_types).where(event_types.c.teamId == team_id).order_by(event_types.c.id)
            ).mappings().first()
        return dict(row) if row else None

    def team_ids_by_slug(self, slug: str) -> List[int]:
        with self.engine.connect() as conn:
            return list(conn.execute(select(teams.c.id).where(teams.c.slug == slug)).scalars())

    def user_exists(self, user_id: int) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(select(users.c.id).where(users.c.id == user_id)).first() is not None

    def team_exists(self, team_id: int) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(select(teams.c.id).where(teams.c.id == team_id)).first() is not None

    # ---- deletes ---------------------------------------------------------------
    @staticmethod
    def _delete_team_rows(conn: Connection, team_ids: Iterable[int]) -> None:
        team_ids = list(team_ids)
        if not team_ids:
            return
        event_ids = list(
            conn.execute(select(event_types.c.id).where(event_types.c.teamId.in_(team_ids))).scalars()
        )
        if event_ids:
            conn.execute(delete(hosts).where(hosts.c.eventTypeId.in_(event_ids)))
            conn.execute(delete(user_event_types).where(user_event_types.c.A.in_(event_ids)))
            conn.execute(delete(event_types).where(event_types.c.id.in_(event_ids)))
        conn.execute(delete(memberships).where(memberships.c.teamId.in_(team_ids)))
        conn.execute(delete(teams).where(teams.c.id.in_(team_ids)))

    def delete_organization(self, organization_id: int) -> int:
        """Delete an organization with its sub-teams and memberships.

        Returns the number of team rows removed (sub-teams plus the org).
        """
        with self.engine.begin() as conn:
            sub_team_ids = list(
                conn.execute(select(teams.c.id).where(teams.c.parentId == organization_id)).scalars()
            )
            conn.execute(
                update(users).where(users.c.organizationId == organization_id).values(organizationId=None)
            )
            self._delete_team_rows(conn, sub_team_ids)
            existed = conn.execute(select(teams.c.id).where(teams.c.id == organization_id)).first()
            self._delete_team_rows(conn, [organization_id])
        return len(sub_team_ids) + (1 if existed else 0)

    def delete_teams(self, team_ids: Iterable[int]) -> None:
        with self.engine.begin() as conn:
            self._delete_team_rows(conn, team_ids)

    def delete_teams_by_slug(self, slug: str) -> int:
        with self.engine.begin() as conn:
            team_ids = list(conn.execute(select(teams.c.id).where(teams.c.slug == slug)).scalars())
            self._delete_team_rows(conn, team_ids)
        return len(team_ids)

    def delete_users(self, user_ids: Iterable[int]) -> int:
        user_ids = list(user_ids)
        if not user_ids:
            return 0
        with self.engine.begin() as conn:
            schedule_ids = list(
                conn.execute(select(schedules.c.id).where(schedules.c.userId.in_(user_ids))).scalars()
            )
            if schedule_ids:
                conn.execute(delete(availabilities).where(availabilities.c.scheduleId.in_(schedule_ids)))
                conn.execute(delete(schedules).where(schedules.c.id.in_(schedule_ids)))
            conn.execute(delete(hosts).where(hosts.c.userId.in_(user_ids)))
            conn.execute(delete(user_event_types).where(user_event_types.c.B.in_(user_ids)))
            conn.execute(delete(event_types).where(event_types.c.userId.in_(user_ids)))
            conn.execute(delete(memberships).where(memberships.c.userId.in_(user_ids)))
            result = conn.execute(delete(users).where(users.c.id.in_(user_ids)))
        return result.rowcount

    def delete_users_by_email(self, emails: Iterable[str]) -> int:
        emails = list(emails)
        if not emails:
            return 0
        with self.engine.connect() as conn:
            user_ids = list(conn.execute(select(users.c.id).where(users.c.email.in_(emails))).scalars())
        return self.delete_users(user_ids)
