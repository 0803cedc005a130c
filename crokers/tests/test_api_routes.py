"""
Route-level tests: status codes, auth guard and error bodies.

Services are monkeypatched so these tests exercise only the HTTP layer.
"""

from types import SimpleNamespace
import pytest
from crokers.services import (
    auth_service,
    game_service,
    game_side_service,
    league_service,
    standings_service,
    team_service,
    user_service,
)
from crokers.utils.exceptions import ConflictError, InternalError, NotFoundError, ValidationError

API = "/api/v1"


# ============================================================================
# Public routes
# ============================================================================

def test_health(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_leagues_is_paged(client, monkeypatch):
    captured = {}

    async def fake_list_leagues(session, q=None, page=None, size=None):
        captured.update(q=q, page=page, size=size)
        return [{"id": 1, "name": "Club"}], 1

    monkeypatch.setattr(league_service, "list_leagues", fake_list_leagues)

    response = client.get(f"{API}/leagues", params={"q": "club", "page": 0, "size": 500})

    assert response.status_code == 200
    assert response.json() == {"data": [{"id": 1, "name": "Club"}], "total": 1, "page": 1, "size": 25}
    assert captured == {"q": "club", "page": 1, "size": 25}


def test_get_missing_league_is_404(client, monkeypatch):
    async def fake_get_league(session, league_id):
        raise NotFoundError("league not found")

    monkeypatch.setattr(league_service, "get_league", fake_get_league)

    response = client.get(f"{API}/leagues/42")
    assert response.status_code == 404
    assert response.json() == {"error": "league not found"}


def test_non_integer_path_id_is_400(client):
    response = client.get(f"{API}/leagues/abc")
    assert response.status_code == 400
    assert "error" in response.json()


def test_unknown_route_uses_error_body(client):
    response = client.get(f"{API}/nope")
    assert response.status_code == 404
    assert "error" in response.json()


def test_player_standings_passes_cursor(client, monkeypatch):
    captured = {}

    async def fake_standings(session, season_id, limit=None, cursor=None):
        captured.update(season_id=season_id, limit=limit, cursor=cursor)
        return {"data": [], "next_cursor": None}

    monkeypatch.setattr(standings_service, "list_player_standings", fake_standings)

    response = client.get(f"{API}/seasons/3/standings/players", params={"limit": 2, "cursor": "abc"})
    assert response.status_code == 200
    assert response.json() == {"data": [], "next_cursor": None}
    assert captured == {"season_id": 3, "limit": 2, "cursor": "abc"}


def test_bad_cursor_is_400(client, monkeypatch):
    async def fake_standings(session, season_id, limit=None, cursor=None):
        raise ValidationError("invalid cursor")

    monkeypatch.setattr(standings_service, "list_player_standings", fake_standings)

    response = client.get(f"{API}/seasons/3/standings/players", params={"cursor": "zzz"})
    assert response.status_code == 400
    assert response.json() == {"error": "invalid cursor"}


def test_unexpected_error_is_500_without_details(client, monkeypatch):
    async def broken(session, season_id):
        raise RuntimeError("connection refused on 10.0.0.3")

    monkeypatch.setattr(standings_service, "get_standings", broken)

    response = client.get(f"{API}/seasons/1/standings")
    assert response.status_code == 500
    assert response.json() == {"error": "internal server error"}


def test_store_failure_in_standings_is_500(client, monkeypatch):
    async def failing(session, season_id):
        raise InternalError("failed to load standings")

    monkeypatch.setattr(standings_service, "get_standings", failing)

    response = client.get(f"{API}/seasons/1/standings")
    assert response.status_code == 500
    assert response.json() == {"error": "failed to load standings"}


# ============================================================================
# Auth guard
# ============================================================================

def test_mutation_without_token_is_401(client):
    response = client.post(f"{API}/leagues", json={"name": "No Auth"})
    assert response.status_code == 401
    assert response.json() == {"error": "missing bearer token"}


def test_mutation_with_bad_token_is_401(client, auth_headers):
    response = client.post(
        f"{API}/leagues", json={"name": "x"}, headers={"Authorization": "Bearer forged"}
    )
    assert response.status_code == 401
    assert response.json() == {"error": "invalid or expired token"}


def test_token_with_non_numeric_subject_is_401(client, monkeypatch):
    monkeypatch.setattr(auth_service, "verify_token", lambda token: {"sub": "abc"})
    response = client.delete(f"{API}/games/1", headers={"Authorization": "Bearer whatever"})
    assert response.status_code == 401
    assert response.json() == {"error": "invalid token payload"}


def test_real_token_is_accepted(client, monkeypatch):
    async def fake_create_league(session, name):
        return {"id": 7, "name": name}

    monkeypatch.setattr(league_service, "create_league", fake_create_league)
    token = auth_service.create_access_token({"sub": "5", "email": "x@example.com"})

    response = client.post(
        f"{API}/leagues", json={"name": "Real"}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 201
    assert response.json() == {"id": 7, "name": "Real"}


# ============================================================================
# Auth routes
# ============================================================================

def test_register_returns_201(client, monkeypatch):
    captured = {}

    async def fake_register(session, email, password, name=None):
        captured.update(email=email, password=password, name=name)
        return {"id": 1, "email": email, "name": "new", "role": "user"}

    monkeypatch.setattr(auth_service, "register", fake_register)

    response = client.post(
        f"{API}/auth/register", json={"email": "new@example.com", "password": "password123"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "user"
    assert captured == {"email": "new@example.com", "password": "password123", "name": None}


def test_register_duplicate_is_409(client, monkeypatch):
    async def fake_register(session, email, password, name=None):
        raise ConflictError("email already in use")

    monkeypatch.setattr(auth_service, "register", fake_register)

    response = client.post(
        f"{API}/auth/register", json={"email": "dup@example.com", "password": "password123"}
    )
    assert response.status_code == 409
    assert response.json() == {"error": "email already in use"}


def test_register_overlong_password_is_400(client, monkeypatch):
    created = []

    async def fake_create_user(session, email, password_hash, name):
        created.append(email)
        return {"id": 1, "email": email, "name": name, "role": "user"}

    monkeypatch.setattr(user_service, "create_user", fake_create_user)

    response = client.post(
        f"{API}/auth/register", json={"email": "long@example.com", "password": "y" * 80}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "password must be at most 72 bytes"}
    assert created == []


def test_login_failures_have_identical_bodies(client, monkeypatch):
    stored = SimpleNamespace(
        id=1,
        email="real@example.com",
        password_hash=auth_service.hash_password("correct-password"),
    )

    async def fake_get_user_by_email(session, email):
        return stored if email == stored.email else None

    monkeypatch.setattr(user_service, "get_user_by_email", fake_get_user_by_email)

    wrong_password = client.post(
        f"{API}/auth/login", json={"email": "real@example.com", "password": "nope-nope"}
    )
    unknown_email = client.post(
        f"{API}/auth/login", json={"email": "ghost@example.com", "password": "correct-password"}
    )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "invalid credentials"}


def test_malformed_json_is_400(client):
    response = client.post(
        f"{API}/auth/login",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


# ============================================================================
# Entity routes
# ============================================================================

def test_create_team_accepts_camel_case(client, auth_headers, monkeypatch):
    captured = {}

    async def fake_create_team(session, name, player_a_id, player_b_id, description=None):
        captured.update(name=name, a=player_a_id, b=player_b_id)
        return {"id": 1, "name": name, "player_a_id": 1, "player_b_id": 2}

    monkeypatch.setattr(team_service, "create_team", fake_create_team)

    response = client.post(
        f"{API}/teams", json={"name": "Pair", "playerAId": 2, "playerBId": 1}, headers=auth_headers
    )
    assert response.status_code == 201
    assert captured == {"name": "Pair", "a": 2, "b": 1}


def test_create_duplicate_team_is_409(client, auth_headers, monkeypatch):
    async def fake_create_team(session, name, player_a_id, player_b_id, description=None):
        raise ConflictError(team_service.DUPLICATE_PAIR_MESSAGE)

    monkeypatch.setattr(team_service, "create_team", fake_create_team)

    response = client.post(
        f"{API}/teams", json={"name": "Again", "playerAId": 2, "playerBId": 1}, headers=auth_headers
    )
    assert response.status_code == 409
    assert response.json() == {"error": "team for this player pair already exists"}


def test_delete_returns_204(client, auth_headers, monkeypatch):
    deleted = []

    async def fake_delete_game(session, game_id):
        deleted.append(game_id)

    monkeypatch.setattr(game_service, "delete_game", fake_delete_game)

    response = client.delete(f"{API}/games/9", headers=auth_headers)
    assert response.status_code == 204
    assert response.content == b""
    assert deleted == [9]


def test_update_game_sends_only_present_fields(client, auth_headers, monkeypatch):
    captured = {}

    async def fake_update_game(session, game_id, fields):
        captured.update(fields)
        return {"id": game_id}

    monkeypatch.setattr(game_service, "update_game", fake_update_game)

    response = client.put(
        f"{API}/games/4",
        json={"location": None, "sideAColor": "black"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert captured == {"location": None, "side_a_color": "black"}


def test_create_game_forwards_sides(client, auth_headers, monkeypatch):
    captured = {}

    async def fake_create_game(session, match_type, side_a, side_b, **kwargs):
        captured.update(match_type=match_type, side_a=side_a, side_b=side_b, **kwargs)
        return {"game": {"id": 1}, "sides": []}

    monkeypatch.setattr(game_service, "create_game", fake_create_game)

    response = client.post(
        f"{API}/games",
        json={
            "seasonId": 3,
            "matchType": "players",
            "sideA": {"playerId": 1, "color": "white"},
            "sideB": {"playerId": 2},
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert captured["match_type"] == "players"
    assert captured["season_id"] == 3
    assert captured["side_a"] == {"team_id": None, "player_id": 1, "color": "white"}
    assert captured["side_b"]["player_id"] == 2


def test_add_points_validation_error_is_400(client, auth_headers, monkeypatch):
    async def fake_add_points(session, game_id, side, delta):
        raise ValidationError("delta must be >= 0")

    monkeypatch.setattr(game_side_service, "add_points", fake_add_points)

    response = client.post(
        f"{API}/games/1/sides/A/points/add", json={"delta": -3}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json() == {"error": "delta must be >= 0"}


@pytest.mark.parametrize("body", [{"delta": "lots"}, {"delta": [1]}])
def test_add_points_wrong_type_is_400(client, auth_headers, body):
    response = client.post(f"{API}/games/1/sides/A/points/add", json=body, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"].startswith("delta")
