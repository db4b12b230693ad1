"""
Pydantic models for API request/response validation.

Request bodies use the camelCase keys the web client sends; every model
also accepts the snake_case field names.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class RegisterRequest(BaseModel):
    """Request to register a new player account."""

    email: str
    password: str
    name: str
    gender: Optional[str] = None


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: str
    password: str


class UserResponse(BaseModel):
    """Public user data (never includes credentials)."""

    id: int
    email: str
    name: str
    image: Optional[str] = None
    role: str
    status: str
    gender: Optional[str] = None
    level: Optional[str] = None


class AuthResponse(BaseModel):
    """Authentication response with JWT token."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class RoleUpdate(BaseModel):
    role: Optional[str] = None


class LevelUpdate(BaseModel):
    level: Optional[str] = None


class ApproveRequest(BaseModel):
    """Request to approve (or un-approve) a user."""

    model_config = ConfigDict(populate_by_name=True)
    user_id: int = Field(alias="userId")
    status: str


class UserUpdate(BaseModel):
    """Partial user update. Empty values are ignored."""

    name: Optional[str] = None
    gender: Optional[str] = None
    level: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


class InvitationCreate(BaseModel):
    """Request to invite a player to a team."""

    model_config = ConfigDict(populate_by_name=True)
    team_id: int = Field(alias="teamId")
    player_id: int = Field(alias="playerId")


class InvitationRespond(BaseModel):
    """Accept (true) or reject (false) an invitation."""

    accept: bool


class InvitationResolveResponse(BaseModel):
    success: bool
    status: str


class CountResponse(BaseModel):
    count: int


class NotificationCountResponse(BaseModel):
    """Badge count and its parts."""

    model_config = ConfigDict(populate_by_name=True)
    count: int
    notifications: int
    invitations: int
    match_requests: int = Field(alias="matchRequests")


class NotificationResponse(BaseModel):
    """Notification response."""

    id: int
    user_id: int
    type: str
    message: str
    is_read: bool
    read_at: Optional[str] = None
    link_url: Optional[str] = None
    match_request_id: Optional[int] = None
    match_id: Optional[int] = None
    created_at: Optional[str] = None
    match_request: Optional[dict] = None
    match: Optional[dict] = None


class MatchRequestCreate(BaseModel):
    """Request to propose a match to another league player."""

    model_config = ConfigDict(populate_by_name=True)
    league_id: int = Field(alias="leagueId")
    opponent_id: int = Field(alias="opponentId")
    message: Optional[str] = None
    suggested_date: Optional[str] = Field(default=None, alias="suggestedDate")
    suggested_time: Optional[str] = Field(default=None, alias="suggestedTime")


class MatchRequestRespond(BaseModel):
    """Opponent's answer: "accept" or "reject"."""

    action: str


class TeamCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = None
    category: Optional[str] = None
    league_id: Optional[int] = Field(default=None, alias="leagueId")
    max_players: Optional[int] = Field(default=None, alias="maxPlayers")


class LeagueCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    format: Optional[str] = None
    season: Optional[str] = None


class CreateSuperadminRequest(BaseModel):
    """Request to create or promote a superadmin account."""

    email: str
    password: str
    name: Optional[str] = None


class CreateSuperadminResponse(BaseModel):
    message: str
    user: dict


class TeamUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = None
    category: Optional[str] = None
    max_players: Optional[int] = Field(default=None, alias="maxPlayers")


class TeamPlayerAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    player_id: Optional[int] = Field(default=None, alias="playerId")


class LeagueUpdate(BaseModel):
    """League edit; action="startLeague" moves a DRAFT league to ACTIVE."""

    name: Optional[str] = None
    status: Optional[str] = None
    season: Optional[str] = None
    action: Optional[str] = None


class LeagueDelete(BaseModel):
    """Body of a league deletion; "DELETE" confirms removing existing matches."""

    confirmation: Optional[str] = None


class LeaguePlayerAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    player_id: Optional[int] = Field(default=None, alias="playerId")


class LeagueTeamAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    team_id: Optional[int] = Field(default=None, alias="teamId")


class FixtureCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    match_type: Optional[str] = Field(default=None, alias="matchType")
    start_date: Optional[str] = Field(default=None, alias="startDate")


class TiebreakScore(BaseModel):
    reporter: int
    opponent: int


class SetScore(BaseModel):
    """One set from the reporter's side."""

    model_config = ConfigDict(populate_by_name=True)
    reporter: int
    opponent: int
    tiebreak: bool = False
    tiebreak_score: Optional[TiebreakScore] = Field(default=None, alias="tiebreakScore")
    super_tiebreak: bool = Field(default=False, alias="superTiebreak")


class ScoreReportRequest(BaseModel):
    sets: List[SetScore]


class MatchUpdate(BaseModel):
    """Match edit. Only managers may change the status."""

    model_config = ConfigDict(populate_by_name=True)
    home_score: Optional[int] = Field(default=None, alias="homeScore")
    away_score: Optional[int] = Field(default=None, alias="awayScore")
    scheduled_date: Optional[str] = Field(default=None, alias="scheduledDate")
    status: Optional[str] = None


class UploadResult(BaseModel):
    """Rows saved and per-row errors of a bulk upload."""

    created: int
    errors: List[str]
    accounts: Optional[List[dict]] = None
