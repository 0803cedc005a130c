"""
Standings and statistics aggregator.

Everything here is read-only and recomputed from the completed-game log on
every call. Query construction lives in standings_queries; this module
folds the rows into per-team and per-player aggregates, in the same
spirit as a stats tracker walking over matches.
"""

import base64
import binascii
import json
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from crokers.database.models import DiscColor, Player, Season, SideLabel
from crokers.services import standings_queries
from crokers.services.store import find_live
from crokers.utils.constants import (
    DEFAULT_STANDINGS_LIMIT,
    MAX_STANDINGS_LIMIT,
    UNKNOWN_LOCATION,
    WIN_PCT_DECIMALS,
)
from crokers.utils.exceptions import InternalError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

COLORS = [c.value for c in DiscColor]
CURSOR_FIELDS = ("wins", "point_diff", "player_id")


#
# Cursor
#

def encode_cursor(wins: int, point_diff: int, player_id: int) -> str:
    """Serialize a standings cursor into an opaque URL-safe token."""
    payload = json.dumps(
        {"wins": wins, "point_diff": point_diff, "player_id": player_id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> Dict[str, int]:
    """
    Parse a token produced by encode_cursor.

    Raises:
        ValidationError: If the token is not a well-formed cursor
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, binascii.Error, UnicodeError):
        raise ValidationError("invalid cursor")
    if not isinstance(data, dict) or set(data) != set(CURSOR_FIELDS):
        raise ValidationError("invalid cursor")
    for field in CURSOR_FIELDS:
        if not isinstance(data[field], int) or isinstance(data[field], bool):
            raise ValidationError("invalid cursor")
    return data


def _after_cursor(row: Dict, cursor: Dict[str, int]) -> bool:
    """Keyset predicate for (wins desc, point_diff desc, player_id asc)."""
    return (
        row["wins"] < cursor["wins"]
        or (row["wins"] == cursor["wins"] and row["point_diff"] < cursor["point_diff"])
        or (
            row["wins"] == cursor["wins"]
            and row["point_diff"] == cursor["point_diff"]
            and row["player_id"] > cursor["player_id"]
        )
    )


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_STANDINGS_LIMIT
    return min(limit, MAX_STANDINGS_LIMIT)


def _win_pct(wins: float, games: int, rounded: bool = True) -> float:
    if games == 0:
        return 0.0
    pct = wins / games
    return round(pct, WIN_PCT_DECIMALS) if rounded else pct


#
# Row helpers
#

async def _fetch(session: AsyncSession, query, what: str) -> List:
    """Run an aggregate query; store failures surface as InternalError."""
    try:
        result = await session.execute(query)
        return result.all()
    except SQLAlchemyError as e:
        logger.error(f"Error loading {what}: {e}")
        raise InternalError(f"failed to load {what}")


async def _require_season(session: AsyncSession, season_id: int) -> None:
    if await find_live(session, Season, season_id) is None:
        raise NotFoundError("season not found")


def _one_row_per_player_game(rows: Iterable) -> List:
    """
    Keep one attribution per (player, game).

    A player can show up more than once in the same game (directly and via a
    team, or via teams on both sides); side A wins the tie.
    """
    chosen = {}
    for row in rows:
        key = (row.player_id, row.game_id)
        current = chosen.get(key)
        if current is None or (row.side == SideLabel.A.value and current.side != SideLabel.A.value):
            chosen[key] = row
    return list(chosen.values())


async def _season_player_rows(session: AsyncSession, season_id: int) -> List:
    rows = await _fetch(session, standings_queries.player_game_rows(season_id=season_id), "player results")
    return _one_row_per_player_game(rows)


def _color_counters() -> Dict[str, int]:
    counters = {}
    for color in COLORS:
        counters[f"{color}_wins"] = 0
        counters[f"{color}_games"] = 0
    return counters


#
# Team standings
#

async def get_standings(session: AsyncSession, season_id: int) -> List[Dict]:
    """
    Team standings for a season from its completed team games.

    A game is a win, loss or tie by comparing the two sides' points; ties
    count as half a win in win_pct.

    Sorted by wins desc, point_diff desc, points_for desc, team_name asc.
    """
    rows = await _fetch(session, standings_queries.team_side_results(season_id), "standings")
    teams: Dict[int, Dict] = {}
    for row in rows:
        stats = teams.get(row.team_id)
        if stats is None:
            stats = teams[row.team_id] = {
                "team_id": row.team_id,
                "team_name": row.team_name,
                "games": 0,
                "wins": 0,
                "losses": 0,
                "ties": 0,
                "points_for": 0,
                "points_against": 0,
            }
        pf = row.points_for or 0
        pa = row.points_against or 0
        stats["games"] += 1
        stats["points_for"] += pf
        stats["points_against"] += pa
        if pf > pa:
            stats["wins"] += 1
        elif pf < pa:
            stats["losses"] += 1
        else:
            stats["ties"] += 1

    standings = []
    for stats in teams.values():
        stats["point_diff"] = stats["points_for"] - stats["points_against"]
        stats["win_pct"] = _win_pct(stats["wins"] + 0.5 * stats["ties"], stats["games"])
        standings.append(stats)

    standings.sort(key=lambda s: (-s["wins"], -s["point_diff"], -s["points_for"], s["team_name"]))
    logger.debug(f"Team standings for season {season_id}: {len(standings)} teams")
    return standings


#
# Player standings
#

async def _roster(session: AsyncSession, season_id: int, rows: List) -> set:
    pairs = await _fetch(session, standings_queries.active_roster_pairs(season_id), "season roster")
    roster = set()
    for player_a_id, player_b_id in pairs:
        roster.add(player_a_id)
        roster.add(player_b_id)
    roster.update(row.player_id for row in rows)
    return roster


async def list_player_standings(
    session: AsyncSession,
    season_id: int,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> Dict:
    """
    One page of player standings, keyset paginated.

    Team games credit both team members with the team's result. Players on
    an active team in the season appear even with zero games.

    Args:
        limit: Page size, 50 by default, at most 200
        cursor: Opaque token from a previous page's next_cursor

    Returns:
        {"data": [rows with a page-relative rank], "next_cursor": token or None}
    """
    page_size = clamp_limit(limit)
    position = decode_cursor(cursor) if cursor else None

    rows = await _season_player_rows(session, season_id)
    per_player: Dict[int, Dict] = defaultdict(
        lambda: {"games": 0, "wins": 0, "losses": 0, "points_for": 0, "points_against": 0}
    )
    for row in rows:
        stats = per_player[row.player_id]
        stats["games"] += 1
        if row.winner_side is not None:
            if row.winner_side == row.side:
                stats["wins"] += 1
            else:
                stats["losses"] += 1
        stats["points_for"] += row.points_for or 0
        stats["points_against"] += row.points_against or 0

    standings = []
    for player_id in await _roster(session, season_id, rows):
        stats = per_player.get(player_id) or {
            "games": 0, "wins": 0, "losses": 0, "points_for": 0, "points_against": 0,
        }
        standings.append({
            "player_id": player_id,
            "games": stats["games"],
            "wins": stats["wins"],
            "losses": stats["losses"],
            "points_for": stats["points_for"],
            "points_against": stats["points_against"],
            "point_diff": stats["points_for"] - stats["points_against"],
            "win_pct": _win_pct(stats["wins"], stats["games"], rounded=False),
        })

    standings.sort(key=lambda s: (-s["wins"], -s["point_diff"], s["player_id"]))
    if position is not None:
        standings = [s for s in standings if _after_cursor(s, position)]

    page = standings[:page_size]
    next_cursor = None
    if len(standings) > page_size:
        last = page[-1]
        next_cursor = encode_cursor(last["wins"], last["point_diff"], last["player_id"])

    # TODO: rank is an ordinal within this page only; a global rank would need the cursor to carry an offset
    for rank, row in enumerate(page, start=1):
        row["rank"] = rank
    return {"data": page, "next_cursor": next_cursor}


#
# Season stats
#

async def list_player_stats(session: AsyncSession, season_id: int) -> List[Dict]:
    """
    Per-player games, wins, losses and win_pct for a season, broken down by
    disc color. Sorted by win_pct desc, games desc, player_id asc.
    """
    await _require_season(session, season_id)
    rows = await _season_player_rows(session, season_id)

    stats: Dict[int, Dict] = {}
    for row in rows:
        entry = stats.get(row.player_id)
        if entry is None:
            entry = stats[row.player_id] = {
                "player_id": row.player_id, "games": 0, "wins": 0, "losses": 0, **_color_counters(),
            }
        _tally(entry, row.side, row.winner_side, row.color)

    out = [_finish(entry) for entry in stats.values()]
    out.sort(key=lambda s: (-s["win_pct"], -s["games"], s["player_id"]))
    return out


async def list_team_stats(session: AsyncSession, season_id: int) -> List[Dict]:
    """
    Per-team stats for a season with the same color breakdown, plus the
    location where the team has won most often.
    """
    await _require_season(session, season_id)
    rows = await _fetch(session, standings_queries.team_side_results(season_id), "team stats")

    stats: Dict[int, Dict] = {}
    location_wins: Dict[int, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for row in rows:
        entry = stats.get(row.team_id)
        if entry is None:
            entry = stats[row.team_id] = {
                "team_id": row.team_id, "games": 0, "wins": 0, "losses": 0, **_color_counters(),
            }
        won = _tally(entry, row.side, row.winner_side, row.color)
        if won:
            location_wins[row.team_id][row.location or UNKNOWN_LOCATION] += 1

    out = []
    for team_id, entry in stats.items():
        entry = _finish(entry)
        wins_by_location = location_wins.get(team_id)
        if wins_by_location:
            best, best_wins = min(wins_by_location.items(), key=lambda item: (-item[1], item[0]))
            entry["best_location"] = best
            entry["best_location_wins"] = best_wins
        else:
            entry["best_location"] = None
            entry["best_location_wins"] = 0
        out.append(entry)
    out.sort(key=lambda s: (-s["win_pct"], -s["games"], s["team_id"]))
    return out


def _tally(entry: Dict, side: str, winner_side: Optional[str], color: Optional[str]) -> bool:
    """Count one game into a stats entry. Returns True if it was a win."""
    color = color or DiscColor.NATURAL.value
    won = winner_side is not None and winner_side == side
    entry["games"] += 1
    entry[f"{color}_games"] += 1
    if won:
        entry["wins"] += 1
        entry[f"{color}_wins"] += 1
    elif winner_side is not None:
        entry["losses"] += 1
    return won


def _finish(entry: Dict) -> Dict:
    entry["win_pct"] = _win_pct(entry["wins"], entry["games"])
    return entry


#
# Diagnostics
#

async def list_player_duplicate_games(session: AsyncSession, player_id: int) -> List[Dict]:
    """
    Completed games where a player is attributed more than once: directly,
    via a team as player A, or via a team as player B.

    Returns one row per (game, side, color) with the attribution paths behind
    it ("direct", "team_player_a", "team_player_b") and their count. Advisory
    only; nothing prevents such games at write time.
    """
    if await find_live(session, Player, player_id) is None:
        raise NotFoundError("player not found")

    rows = await _fetch(
        session,
        standings_queries.player_game_rows(player_id=player_id, match_types=False),
        "player attributions",
    )
    by_game: Dict[int, List] = defaultdict(list)
    for row in rows:
        by_game[row.game_id].append(row)

    out = []
    for game_id in sorted(by_game):
        attributions = by_game[game_id]
        if len(attributions) < 2:
            continue
        groups: Dict[Tuple[str, str], List] = defaultdict(list)
        for row in attributions:
            groups[(row.side, row.color)].append(row)
        for (side, color), group in sorted(groups.items()):
            first = group[0]
            out.append({
                "game_id": game_id,
                "season_id": first.season_id,
                "match_type": first.match_type,
                "status": first.status,
                "winner_side": first.winner_side,
                "side": side,
                "color": color,
                "paths": sorted(row.path for row in group),
                "row_count": len(group),
            })
    if out:
        logger.warning(f"Player {player_id} has {len(out)} duplicate attribution rows")
    return out
