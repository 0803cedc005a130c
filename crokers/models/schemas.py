"""
Pydantic models for API request validation.

Request bodies accept camelCase (the wire format) or snake_case field names.
Update models are partial: routes dump them with exclude_unset so a field
that is absent stays unchanged while an explicit null clears it.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for request bodies."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# Auth


class RegisterRequest(RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateRoleRequest(RequestModel):
    role: Optional[str] = None


class UpdateNameRequest(RequestModel):
    name: Optional[str] = None


# Leagues / seasons / players


class CreateLeagueRequest(RequestModel):
    name: Optional[str] = None


class UpdateLeagueRequest(RequestModel):
    name: Optional[str] = None


class CreateSeasonRequest(RequestModel):
    league_id: Optional[int] = None
    name: Optional[str] = None
    starts_on: Optional[str] = None  # YYYY-MM-DD
    ends_on: Optional[str] = None
    timezone: Optional[str] = None
    description: Optional[str] = None


class UpdateSeasonRequest(CreateSeasonRequest):
    pass


class CreatePlayerRequest(RequestModel):
    nickname: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_id: Optional[int] = None


class UpdatePlayerRequest(CreatePlayerRequest):
    pass


# Teams


class CreateTeamRequest(RequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    player_a_id: Optional[int] = None
    player_b_id: Optional[int] = None


class UpdateTeamRequest(CreateTeamRequest):
    pass


class LinkTeamSeasonRequest(RequestModel):
    team_id: Optional[int] = None
    season_id: Optional[int] = None
    is_active: Optional[bool] = None  # defaults to true


class SetTeamSeasonActiveRequest(RequestModel):
    is_active: bool


# Games


class GameParticipant(RequestModel):
    """One side of a new game: a team or a player, plus its disc color."""

    team_id: Optional[int] = None
    player_id: Optional[int] = None
    color: Optional[str] = None


class CreateGameRequest(RequestModel):
    season_id: Optional[int] = None  # null => exhibition
    match_type: Optional[str] = None
    target_points: Optional[int] = None
    scheduled_at: Optional[str] = None  # RFC 3339
    timezone: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    side_a: Optional[GameParticipant] = None
    side_b: Optional[GameParticipant] = None


class UpdateGameRequest(RequestModel):
    season_id: Optional[int] = None  # 0 or null => exhibition
    target_points: Optional[int] = None
    scheduled_at: Optional[str] = None  # "" or null clears
    timezone: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    side_a_color: Optional[str] = None
    side_b_color: Optional[str] = None


class CompleteGameRequest(RequestModel):
    winner_side: Optional[str] = None


class SetColorRequest(RequestModel):
    color: Optional[str] = None


class AddPointsRequest(RequestModel):
    delta: Optional[int] = None


class SetPointsRequest(RequestModel):
    points: Optional[int] = None
