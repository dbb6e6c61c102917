from __future__ import annotations

import uuid
from datetime import datetime, date
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from lcms.extensions import db, bcrypt

JSONType = JSON().with_variant(JSONB, 'postgresql')


class TimestampedBase(db.Model):
    """Abstract base providing id/created/updated columns."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UserRole(Enum):
    ADMIN = "admin"
    LEAGUE_ADMIN = "league_admin"
    CUP_ADMIN = "cup_admin"
    TEAM_MANAGER = "team_manager"
    MATCH_OFFICIAL = "match_official"


class SportType(Enum):
    FOOTBALL = "football"
    BASKETBALL = "basketball"
    VOLLEYBALL = "volleyball"


class LeagueStatus(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class MatchStatus(Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class PlayerPosition(Enum):
    GOALKEEPER = "goalkeeper"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    FORWARD = "forward"
    SUBSTITUTE = "substitute"


class MatchEventType(Enum):
    GOAL = "goal"
    PENALTY = "penalty"
    OWN_GOAL = "own_goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"


class CupStatus(Enum):
    DRAFT = "draft"
    GROUP_STAGE = "group_stage"
    KNOCKOUT = "knockout"
    COMPLETED = "completed"


class CupStage(Enum):
    GROUP = "group"
    ROUND_OF_16 = "round_of_16"
    QUARTER_FINAL = "quarter_final"
    SEMI_FINAL = "semi_final"
    FINAL = "final"


class User(TimestampedBase):
    __tablename__ = "user"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(
        SqlEnum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.TEAM_MANAGER,
    )
    active: Mapped[bool] = mapped_column('is_active', Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    audit_logs: Mapped[list["AuditLog"]] = relationship(back_populates="user")
    managed_teams: Mapped[list["Team"]] = relationship(back_populates="manager")

    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        except ValueError:
            return False

    def has_role(self, *roles: UserRole | str) -> bool:
        role_value = self.role.value if isinstance(self.role, UserRole) else str(self.role)
        allowed = {r.value if isinstance(r, UserRole) else str(r) for r in roles}
        return role_value in allowed

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:  # Flask-Login compatibility
        return bool(self.active)

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return self.id


class League(TimestampedBase):
    __tablename__ = "league"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sport: Mapped[SportType] = mapped_column(
        SqlEnum(SportType, name="sport_type", native_enum=False),
        nullable=False,
        default=SportType.FOOTBALL,
    )
    description: Mapped[str | None] = mapped_column(Text)
    season_start_date: Mapped[date | None] = mapped_column(Date)
    season_end_date: Mapped[date | None] = mapped_column(Date)
    logo_url: Mapped[str | None] = mapped_column(String(512))
    status: Mapped[LeagueStatus] = mapped_column(
        SqlEnum(LeagueStatus, name="league_status", native_enum=False),
        nullable=False,
        default=LeagueStatus.ACTIVE,
    )
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    divisions: Mapped[list["Division"]] = relationship(
        back_populates="league",
        cascade="all, delete-orphan",
        order_by="Division.tier",
    )


class Division(TimestampedBase):
    __tablename__ = "division"

    league_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("league.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_teams: Mapped[int] = mapped_column(Integer, nullable=False, default=16)
    promotion_spots: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    relegation_spots: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    league: Mapped[League] = relationship(back_populates="divisions")
    teams: Mapped[list["Team"]] = relationship(
        back_populates="division",
        cascade="all, delete-orphan",
        order_by="Team.name",
    )
    matches: Mapped[list["Match"]] = relationship(
        back_populates="division",
        cascade="all, delete-orphan",
    )
    standings: Mapped[list["DivisionStanding"]] = relationship(
        back_populates="division",
        cascade="all, delete-orphan",
        order_by="DivisionStanding.position",
    )


class Team(TimestampedBase):
    __tablename__ = "team"

    division_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("division.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    manager_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="SET NULL"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(32))
    home_city: Mapped[str | None] = mapped_column(String(255))
    home_venue: Mapped[str | None] = mapped_column(String(255))
    founded_year: Mapped[int | None] = mapped_column(Integer)
    logo_url: Mapped[str | None] = mapped_column(String(512))

    division: Mapped[Division] = relationship(back_populates="teams")
    manager: Mapped[User | None] = relationship(back_populates="managed_teams")
    home_matches: Mapped[list["Match"]] = relationship(
        back_populates="home_team",
        foreign_keys="Match.home_team_id",
        cascade="all, delete-orphan",
    )
    away_matches: Mapped[list["Match"]] = relationship(
        back_populates="away_team",
        foreign_keys="Match.away_team_id",
        cascade="all, delete-orphan",
    )
    standings: Mapped[list["DivisionStanding"]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
    )
    players: Mapped[list["Player"]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="Player.jersey_number",
    )


class Player(TimestampedBase):
    __tablename__ = "player"
    __table_args__ = (
        Index("ix_player_team_active", "team_id", "is_active"),
    )

    team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    jersey_number: Mapped[int | None] = mapped_column(Integer)
    position: Mapped[PlayerPosition | None] = mapped_column(
        SqlEnum(PlayerPosition, name="player_position", native_enum=False),
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    nationality: Mapped[str | None] = mapped_column(String(128))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    team: Mapped[Team] = relationship(back_populates="players")
    events: Mapped[list["MatchEvent"]] = relationship(
        back_populates="player",
        cascade="all, delete-orphan",
    )


class Match(TimestampedBase):
    __tablename__ = "league_match"
    __table_args__ = (
        Index("ix_match_division_round", "division_id", "round_number"),
        Index("ix_match_division_status", "division_id", "status"),
    )

    division_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("division.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    home_team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    away_team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referee_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="SET NULL"),
        index=True,
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    match_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    venue: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[MatchStatus] = mapped_column(
        SqlEnum(MatchStatus, name="match_status", native_enum=False),
        nullable=False,
        default=MatchStatus.SCHEDULED,
    )
    home_score: Mapped[int | None] = mapped_column(Integer)
    away_score: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)

    division: Mapped[Division] = relationship(back_populates="matches")
    home_team: Mapped[Team] = relationship(
        back_populates="home_matches",
        foreign_keys=[home_team_id],
    )
    away_team: Mapped[Team] = relationship(
        back_populates="away_matches",
        foreign_keys=[away_team_id],
    )
    referee: Mapped[User | None] = relationship(foreign_keys=[referee_id])
    events: Mapped[list["MatchEvent"]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by=lambda: [MatchEvent.minute, MatchEvent.extra_time_minute],
    )


class MatchEvent(TimestampedBase):
    __tablename__ = "match_event"

    match_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("league_match.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("player.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recorded_by_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="SET NULL"),
    )
    event_type: Mapped[MatchEventType] = mapped_column(
        SqlEnum(MatchEventType, name="match_event_type", native_enum=False),
        nullable=False,
    )
    minute: Mapped[int] = mapped_column(Integer, nullable=False)
    extra_time_minute: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    match: Mapped[Match] = relationship(back_populates="events")
    team: Mapped[Team] = relationship()
    player: Mapped[Player] = relationship(back_populates="events")
    recorded_by: Mapped[User | None] = relationship()


class DivisionStanding(TimestampedBase):
    __tablename__ = "division_standing"
    __table_args__ = (
        UniqueConstraint("division_id", "team_id", name="uq_division_standing_team"),
    )

    division_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("division.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    drawn: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals_for: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals_against: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goal_difference: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    division: Mapped[Division] = relationship(back_populates="standings")
    team: Mapped[Team] = relationship(back_populates="standings")


class Cup(TimestampedBase):
    __tablename__ = "cup"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    season: Mapped[str | None] = mapped_column(String(32))
    total_teams: Mapped[int] = mapped_column(Integer, nullable=False, default=16)
    teams_per_group: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    status: Mapped[CupStatus] = mapped_column(
        SqlEnum(CupStatus, name="cup_status", native_enum=False),
        nullable=False,
        default=CupStatus.DRAFT,
    )
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

    teams: Mapped[list["CupTeam"]] = relationship(
        back_populates="cup",
        cascade="all, delete-orphan",
        order_by="CupTeam.name",
    )
    groups: Mapped[list["CupGroup"]] = relationship(
        back_populates="cup",
        cascade="all, delete-orphan",
        order_by="CupGroup.group_order",
    )
    matches: Mapped[list["CupMatch"]] = relationship(
        back_populates="cup",
        cascade="all, delete-orphan",
    )


class CupGroup(TimestampedBase):
    __tablename__ = "cup_group"
    __table_args__ = (
        UniqueConstraint("cup_id", "group_name", name="uq_cup_group_name"),
    )

    cup_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cup.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_name: Mapped[str] = mapped_column(String(64), nullable=False)
    group_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    cup: Mapped[Cup] = relationship(back_populates="groups")
    teams: Mapped[list["CupTeam"]] = relationship(
        back_populates="group",
        order_by="CupTeam.name",
    )
    matches: Mapped[list["CupMatch"]] = relationship(back_populates="group")


class CupTeam(TimestampedBase):
    __tablename__ = "cup_team"

    cup_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cup.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("cup_group.id", ondelete="SET NULL"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(32))
    logo_url: Mapped[str | None] = mapped_column(String(512))
    city: Mapped[str | None] = mapped_column(String(255))
    stadium: Mapped[str | None] = mapped_column(String(255))
    coach: Mapped[str | None] = mapped_column(String(255))

    # Group standings, rewritten wholesale by StandingsService
    played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    drawn: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals_for: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals_against: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goal_difference: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    cup: Mapped[Cup] = relationship(back_populates="teams")
    group: Mapped[CupGroup | None] = relationship(back_populates="teams")
    home_matches: Mapped[list["CupMatch"]] = relationship(
        back_populates="home_team",
        foreign_keys="CupMatch.home_cup_team_id",
        cascade="all, delete-orphan",
    )
    away_matches: Mapped[list["CupMatch"]] = relationship(
        back_populates="away_team",
        foreign_keys="CupMatch.away_cup_team_id",
        cascade="all, delete-orphan",
    )


class CupMatch(TimestampedBase):
    __tablename__ = "cup_match"
    __table_args__ = (
        Index("ix_cup_match_cup_stage", "cup_id", "stage"),
    )

    cup_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cup.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("cup_group.id", ondelete="SET NULL"),
        index=True,
    )
    home_cup_team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cup_team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    away_cup_team_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cup_team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    round_number: Mapped[int | None] = mapped_column(Integer)
    stage: Mapped[CupStage] = mapped_column(
        SqlEnum(CupStage, name="cup_stage", native_enum=False),
        nullable=False,
        default=CupStage.GROUP,
    )
    status: Mapped[MatchStatus] = mapped_column(
        SqlEnum(MatchStatus, name="match_status", native_enum=False),
        nullable=False,
        default=MatchStatus.SCHEDULED,
    )
    home_score: Mapped[int | None] = mapped_column(Integer)
    away_score: Mapped[int | None] = mapped_column(Integer)
    match_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    venue: Mapped[str | None] = mapped_column(String(255))

    cup: Mapped[Cup] = relationship(back_populates="matches")
    group: Mapped[CupGroup | None] = relationship(back_populates="matches")
    home_team: Mapped[CupTeam] = relationship(
        back_populates="home_matches",
        foreign_keys=[home_cup_team_id],
    )
    away_team: Mapped[CupTeam] = relationship(
        back_populates="away_matches",
        foreign_keys=[away_cup_team_id],
    )


class AuditLog(TimestampedBase):
    __tablename__ = "audit_log"

    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="SET NULL"),
        index=True,
    )
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(36))
    meta: Mapped[dict | None] = mapped_column(JSONType, default=dict)

    user: Mapped[User | None] = relationship(back_populates="audit_logs")
