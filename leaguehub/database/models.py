"""
SQLAlchemy ORM models for the league management system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from leaguehub.database.db import Base


class UserRole(str, enum.Enum):
    """User role enum. Determines route-level access."""

    PLAYER = "PLAYER"
    CAPTAIN = "CAPTAIN"
    MANAGER = "MANAGER"
    SUPERADMIN = "SUPERADMIN"


class UserStatus(str, enum.Enum):
    """User approval status enum."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class PlayerLevel(str, enum.Enum):
    """Player skill level, assigned by captains and above."""

    MASTER = "MASTER"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class TeamCategory(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    MIXED = "MIXED"


class LeagueType(str, enum.Enum):
    INTRA_TEAM = "INTRA_TEAM"
    CLUB = "CLUB"


class LeagueFormat(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    DOUBLES = "DOUBLES"


class LeagueStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class InvitationStatus(str, enum.Enum):
    """Team invitation status enum. Terminal once not PENDING."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class MatchRequestStatus(str, enum.Enum):
    """Match request status enum."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class MatchStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    PLAYED = "PLAYED"
    CANCELLED = "CANCELLED"


class MatchType(str, enum.Enum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"


class ScoreStatus(str, enum.Enum):
    """Where a match result stands between the two reports and manager approval."""

    PENDING = "PENDING"
    REPORTED_BY_HOME = "REPORTED_BY_HOME"
    REPORTED_BY_AWAY = "REPORTED_BY_AWAY"
    REPORTED_BY_BOTH = "REPORTED_BY_BOTH"
    APPROVED = "APPROVED"
    MANAGER_ENTERED = "MANAGER_ENTERED"


class NotificationType(str, enum.Enum):
    """Notification type enum."""

    MATCH_REQUEST = "MATCH_REQUEST"
    MATCH_ACCEPTED = "MATCH_ACCEPTED"
    MATCH_REJECTED = "MATCH_REJECTED"
    MATCH_MESSAGE = "MATCH_MESSAGE"
    TEAM_INVITATION = "TEAM_INVITATION"


class User(Base):
    """User accounts with email/password or third-party authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=True)  # NULL for OAuth-only accounts
    name = Column(String, nullable=False)
    image = Column(String, nullable=True)
    role = Column(String(20), default=UserRole.PLAYER.value, nullable=False)
    status = Column(String(20), default=UserStatus.PENDING.value, nullable=False)
    gender = Column(String(10), nullable=True)
    level = Column(String(10), nullable=True)  # Set by a captain or superadmin after signup
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    captained_teams = relationship("Team", back_populates="captain")
    team_memberships = relationship(
        "TeamPlayer", back_populates="player", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_status_role", "status", "role"),
    )


class League(Base):
    """Leagues that teams and players compete in."""

    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    type = Column(String(20), default=LeagueType.INTRA_TEAM.value, nullable=False)
    category = Column(String(10), default=TeamCategory.MIXED.value, nullable=False)
    format = Column(String(20), default=LeagueFormat.INDIVIDUAL.value, nullable=False)
    season = Column(String, nullable=True)  # e.g. "2024-2025"
    status = Column(String(20), default=LeagueStatus.DRAFT.value, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    teams = relationship("Team", back_populates="league")
    players = relationship("LeaguePlayer", back_populates="league", cascade="all, delete-orphan")
    creator = relationship("User", foreign_keys=[created_by])
    matches = relationship("Match", back_populates="league")
    match_requests = relationship("MatchRequest", back_populates="league")


class LeaguePlayer(Base):
    """Join table (User ↔ League)."""

    __tablename__ = "league_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league = relationship("League", back_populates="players")
    player = relationship("User")

    __table_args__ = (
        UniqueConstraint("league_id", "player_id", name="uq_league_player"),
        Index("idx_league_players_player", "player_id"),
    )


class Team(Base):
    """Teams, each led by one captain."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    category = Column(String(10), nullable=False)
    captain_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=True)
    max_players = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    captain = relationship("User", back_populates="captained_teams")
    league = relationship("League", back_populates="teams")
    players = relationship("TeamPlayer", back_populates="team", cascade="all, delete-orphan")
    invitations = relationship("Invitation", back_populates="team", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_teams_captain", "captain_id"),
        Index("idx_teams_league", "league_id"),
    )


class TeamPlayer(Base):
    """Join table (User ↔ Team)."""

    __tablename__ = "team_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    team = relationship("Team", back_populates="players")
    player = relationship("User", back_populates="team_memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_team_player"),
        Index("idx_team_players_player", "player_id"),
    )


class Invitation(Base):
    """Offer for a player to join a team."""

    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), default=InvitationStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    team = relationship("Team", back_populates="invitations")
    player = relationship("User", foreign_keys=[player_id])
    inviter = relationship("User", foreign_keys=[invited_by])

    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_invitation_team_player"),
        Index("idx_invitations_player_status", "player_id", "status"),
        Index("idx_invitations_team_status", "team_id", "status"),
    )


class MatchRequest(Base):
    """Proposal from one league player to another to schedule a match."""

    __tablename__ = "match_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    opponent_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String(20), default=MatchRequestStatus.PENDING.value, nullable=False)
    message = Column(Text, nullable=True)
    suggested_date = Column(DateTime(timezone=True), nullable=True)
    suggested_time = Column(String(20), nullable=True)  # Free-form, e.g. "18:30"
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    league = relationship("League", back_populates="match_requests")
    requester = relationship("User", foreign_keys=[requester_id])
    opponent = relationship("User", foreign_keys=[opponent_id])
    match = relationship("Match", back_populates="match_request", uselist=False)

    __table_args__ = (
        Index("idx_match_requests_opponent_status", "opponent_id", "status"),
        Index("idx_match_requests_requester", "requester_id"),
    )


class Match(Base):
    """
    Scheduled or played match inside a league.

    Individual leagues set the home/away players, doubles fixtures set the
    home/away teams. home_score/away_score hold sets won once a result exists.
    """

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    home_player_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    away_player_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    round = Column(Integer, nullable=True)  # Fixture round, 1-based
    category = Column(String(10), nullable=True)
    match_type = Column(String(10), default=MatchType.SINGLE.value, nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), default=MatchStatus.SCHEDULED.value, nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    score_status = Column(String(20), default=ScoreStatus.PENDING.value, nullable=False)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    match_request_id = Column(Integer, ForeignKey("match_requests.id"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    league = relationship("League", back_populates="matches")
    home_player = relationship("User", foreign_keys=[home_player_id])
    away_player = relationship("User", foreign_keys=[away_player_id])
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    approver = relationship("User", foreign_keys=[approved_by])
    match_request = relationship("MatchRequest", back_populates="match")
    score_reports = relationship(
        "MatchScoreReport", back_populates="match", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_matches_league", "league_id"),
        Index("idx_matches_score_status", "score_status"),
    )


class MatchScoreReport(Base):
    """One side's account of a match result. At most one per reporter per match."""

    __tablename__ = "match_score_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    reported_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    sets_won = Column(Integer, nullable=False)
    sets_lost = Column(Integer, nullable=False)
    games_won = Column(Integer, nullable=False)
    games_lost = Column(Integer, nullable=False)
    set_scores = Column(JSON, nullable=False)  # Sets as entered, from the reporter's side
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    match = relationship("Match", back_populates="score_reports")
    reporter = relationship("User")

    __table_args__ = (
        UniqueConstraint("match_id", "reported_by", name="uq_score_report_match_reporter"),
    )


class Notification(Base):
    """User notifications for in-app messaging."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(String, nullable=False)  # NotificationType enum value
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    link_url = Column(String(500), nullable=True)  # Navigation target
    match_request_id = Column(Integer, ForeignKey("match_requests.id"), nullable=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", backref="notifications")
    match_request = relationship("MatchRequest")
    match = relationship("Match")

    __table_args__ = (
        Index("idx_notifications_user_unread", "user_id", "is_read", "created_at"),
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )
