"""
Named query builders for the standings and stats aggregator.

Each builder returns a SQLAlchemy Select producing flat rows; the
aggregation itself happens in standings_service. Only completed,
non-tombstoned games and sides are ever considered.
"""

from typing import Optional
from sqlalchemy import select, literal, union_all
from sqlalchemy.orm import aliased
from crokers.database.models import Game, GameSide, GameStatus, MatchType, Team, TeamSeason

# Attribution paths for a player in a game
PATH_DIRECT = "direct"
PATH_TEAM_PLAYER_A = "team_player_a"
PATH_TEAM_PLAYER_B = "team_player_b"


def _completed_game_filters(season_id: Optional[int]):
    filters = [
        Game.status == GameStatus.COMPLETED.value,
        Game.deleted_at.is_(None),
        GameSide.deleted_at.is_(None),
    ]
    if season_id is not None:
        filters.append(Game.season_id == season_id)
    return filters


def team_side_results(season_id: int):
    """
    One row per team side of each completed team game in the season, with
    the opposing side's points.

    Columns: game_id, side, team_id, team_name, color, location,
    winner_side, points_for, points_against
    """
    opponent = aliased(GameSide)
    return (
        select(
            GameSide.game_id,
            GameSide.side,
            GameSide.team_id,
            Team.name.label("team_name"),
            GameSide.color,
            Game.location,
            Game.winner_side,
            GameSide.points.label("points_for"),
            opponent.points.label("points_against"),
        )
        .join(Game, Game.id == GameSide.game_id)
        .join(Team, Team.id == GameSide.team_id)
        .join(
            opponent,
            (opponent.game_id == GameSide.game_id)
            & (opponent.side != GameSide.side)
            & opponent.deleted_at.is_(None),
        )
        .where(
            *_completed_game_filters(season_id),
            Game.match_type == MatchType.TEAMS.value,
            GameSide.team_id.isnot(None),
        )
    )


def _player_rows(path: str, season_id: Optional[int], player_id: Optional[int], match_types: bool):
    opponent = aliased(GameSide)
    if path == PATH_DIRECT:
        player_col = GameSide.player_id
    elif path == PATH_TEAM_PLAYER_A:
        player_col = Team.player_a_id
    else:
        player_col = Team.player_b_id

    query = select(
        Game.id.label("game_id"),
        Game.season_id,
        Game.match_type,
        Game.status,
        Game.winner_side,
        GameSide.side,
        GameSide.color,
        player_col.label("player_id"),
        GameSide.points.label("points_for"),
        opponent.points.label("points_against"),
        literal(path).label("path"),
    ).select_from(GameSide).join(Game, Game.id == GameSide.game_id)

    if path != PATH_DIRECT:
        query = query.join(Team, Team.id == GameSide.team_id)

    query = query.outerjoin(
        opponent,
        (opponent.game_id == GameSide.game_id)
        & (opponent.side != GameSide.side)
        & opponent.deleted_at.is_(None),
    ).where(*_completed_game_filters(season_id))

    if path == PATH_DIRECT:
        query = query.where(GameSide.player_id.isnot(None))
        if match_types:
            query = query.where(Game.match_type == MatchType.PLAYERS.value)
    else:
        query = query.where(GameSide.team_id.isnot(None))
        if match_types:
            query = query.where(Game.match_type == MatchType.TEAMS.value)

    if player_id is not None:
        query = query.where(player_col == player_id)
    return query


def player_game_rows(
    season_id: Optional[int] = None,
    player_id: Optional[int] = None,
    match_types: bool = True,
):
    """
    Expand completed game sides into per-player rows.

    A direct player side yields one row; a team side yields one row for each
    of the team's two players. With match_types, direct rows only come from
    "players" games and team rows only from "teams" games.

    Columns: game_id, season_id, match_type, status, winner_side, side,
    color, player_id, points_for, points_against (None when the opposing
    side is missing), path
    """
    return union_all(
        _player_rows(PATH_DIRECT, season_id, player_id, match_types),
        _player_rows(PATH_TEAM_PLAYER_A, season_id, player_id, match_types),
        _player_rows(PATH_TEAM_PLAYER_B, season_id, player_id, match_types),
    )


def active_roster_pairs(season_id: int):
    """Player pairs of teams with a live, active link to the season."""
    return (
        select(Team.player_a_id, Team.player_b_id)
        .join(TeamSeason, TeamSeason.team_id == Team.id)
        .where(
            TeamSeason.season_id == season_id,
            TeamSeason.deleted_at.is_(None),
            TeamSeason.is_active.is_(True),
            Team.deleted_at.is_(None),
        )
    )
