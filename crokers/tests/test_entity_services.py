"""
Tests for league, season, player, team and team-season services.
"""

import pytest
import pytest_asyncio
from crokers.services import (
    league_service,
    player_service,
    season_service,
    team_season_service,
    team_service,
)
from crokers.services.pagination import normalize_page, search_pattern, paged_response
from crokers.utils.exceptions import ConflictError, NotFoundError, ValidationError


# ============================================================================
# Pagination helpers
# ============================================================================

class TestPagination:
    @pytest.mark.parametrize(
        "page,size,expected",
        [
            (None, None, (1, 25)),
            (0, 10, (1, 10)),
            (-3, 0, (1, 25)),
            (2, 100, (2, 100)),
            (2, 101, (2, 25)),
            (4, -1, (4, 25)),
        ],
    )
    def test_normalize_page(self, page, size, expected):
        assert normalize_page(page, size) == expected

    def test_search_pattern(self):
        assert search_pattern(None) is None
        assert search_pattern("   ") is None
        assert search_pattern(" Spring ") == "%spring%"

    def test_paged_response_shape(self):
        assert paged_response([{"id": 1}], 7, 2, 3) == {
            "data": [{"id": 1}],
            "total": 7,
            "page": 2,
            "size": 3,
        }


# ============================================================================
# Leagues
# ============================================================================

@pytest.mark.asyncio
async def test_create_and_get_league(db_session):
    league = await league_service.create_league(db_session, "  Thursday Club ")
    fetched = await league_service.get_league(db_session, league["id"])

    assert fetched["name"] == "Thursday Club"
    assert fetched["created_at"] is not None


@pytest.mark.asyncio
async def test_create_league_requires_name(db_session):
    with pytest.raises(ValidationError):
        await league_service.create_league(db_session, "   ")


@pytest.mark.asyncio
async def test_list_leagues_search_and_total(db_session):
    for name in ["North Crokinole", "South Crokinole", "Board Games"]:
        await league_service.create_league(db_session, name)

    items, total = await league_service.list_leagues(db_session, q="CROKINOLE", page=1, size=1)

    assert total == 2
    assert len(items) == 1
    # newest first
    assert items[0]["name"] == "South Crokinole"


@pytest.mark.asyncio
async def test_deleted_league_is_hidden(db_session):
    league = await league_service.create_league(db_session, "Gone")
    await league_service.delete_league(db_session, league["id"])

    with pytest.raises(NotFoundError):
        await league_service.get_league(db_session, league["id"])
    with pytest.raises(NotFoundError):
        await league_service.update_league(db_session, league["id"], {"name": "Back"})
    items, total = await league_service.list_leagues(db_session)
    assert total == 0
    assert items == []


@pytest.mark.asyncio
async def test_delete_missing_league_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        await league_service.delete_league(db_session, 999)


# ============================================================================
# Seasons
# ============================================================================

@pytest_asyncio.fixture
async def league(db_session):
    return await league_service.create_league(db_session, "Main League")


@pytest.mark.asyncio
async def test_create_season_defaults_timezone(db_session, league):
    season = await season_service.create_season(
        db_session, league["id"], "Spring", starts_on="2025-03-01", ends_on="2025-05-31"
    )

    assert season["timezone"] == "America/New_York"
    assert season["starts_on"] == "2025-03-01"
    assert season["ends_on"] == "2025-05-31"


@pytest.mark.asyncio
async def test_create_season_rejects_inverted_range(db_session, league):
    with pytest.raises(ValidationError):
        await season_service.create_season(
            db_session, league["id"], "Backwards", starts_on="2025-05-01", ends_on="2025-04-01"
        )


@pytest.mark.asyncio
async def test_create_season_rejects_bad_date_and_timezone(db_session, league):
    with pytest.raises(ValidationError):
        await season_service.create_season(db_session, league["id"], "S", starts_on="03/01/2025")
    with pytest.raises(ValidationError):
        await season_service.create_season(db_session, league["id"], "S", timezone="Mars/Olympus")


@pytest.mark.asyncio
async def test_create_season_requires_live_league(db_session, league):
    await league_service.delete_league(db_session, league["id"])
    with pytest.raises(ValidationError):
        await season_service.create_season(db_session, league["id"], "Orphan")


@pytest.mark.asyncio
async def test_update_season_partial(db_session, league):
    season = await season_service.create_season(
        db_session, league["id"], "Fall", starts_on="2025-09-01", description="weekly"
    )

    updated = await season_service.update_season(db_session, season["id"], {"name": "Fall 2025"})
    assert updated["name"] == "Fall 2025"
    assert updated["description"] == "weekly"
    assert updated["starts_on"] == "2025-09-01"

    cleared = await season_service.update_season(
        db_session, season["id"], {"description": None, "starts_on": None}
    )
    assert cleared["description"] is None
    assert cleared["starts_on"] is None


@pytest.mark.asyncio
async def test_update_season_checks_range_against_stored_dates(db_session, league):
    season = await season_service.create_season(
        db_session, league["id"], "Winter", starts_on="2025-12-01"
    )
    with pytest.raises(ValidationError):
        await season_service.update_season(db_session, season["id"], {"ends_on": "2025-11-30"})


@pytest.mark.asyncio
async def test_list_seasons_by_league(db_session, league):
    other = await league_service.create_league(db_session, "Other League")
    await season_service.create_season(db_session, league["id"], "A")
    await season_service.create_season(db_session, league["id"], "B")
    await season_service.create_season(db_session, other["id"], "C")

    items, total = await season_service.list_seasons(db_session, league_id=league["id"])
    assert total == 2
    assert {s["name"] for s in items} == {"A", "B"}


# ============================================================================
# Players
# ============================================================================

@pytest.mark.asyncio
async def test_update_player_null_clears_absent_keeps(db_session):
    player = await player_service.create_player(
        db_session, "Flick", first_name="Fran", last_name="Lick"
    )

    kept = await player_service.update_player(db_session, player["id"], {"nickname": "Flicker"})
    assert kept["nickname"] == "Flicker"
    assert kept["first_name"] == "Fran"
    assert kept["last_name"] == "Lick"

    cleared = await player_service.update_player(db_session, player["id"], {"first_name": None})
    assert cleared["first_name"] is None
    assert cleared["last_name"] == "Lick"


@pytest.mark.asyncio
async def test_update_player_nickname_cannot_be_cleared(db_session):
    player = await player_service.create_player(db_session, "Ace")
    with pytest.raises(ValidationError):
        await player_service.update_player(db_session, player["id"], {"nickname": None})


@pytest.mark.asyncio
async def test_create_player_unknown_user(db_session):
    with pytest.raises(ValidationError):
        await player_service.create_player(db_session, "Ghost", user_id=4242)


@pytest.mark.asyncio
async def test_list_players_matches_any_name(db_session):
    await player_service.create_player(db_session, "Twenty", first_name="Sam")
    await player_service.create_player(db_session, "Shooter", last_name="Samson")
    await player_service.create_player(db_session, "Other")

    items, total = await player_service.list_players(db_session, q="sam")
    assert total == 2
    assert {p["nickname"] for p in items} == {"Twenty", "Shooter"}


# ============================================================================
# Teams
# ============================================================================

@pytest_asyncio.fixture
async def players(db_session):
    created = []
    for nickname in ["P1", "P2", "P3"]:
        created.append(await player_service.create_player(db_session, nickname))
    return created


@pytest.mark.asyncio
async def test_create_team_stores_canonical_pair(db_session, players):
    p1, p2, _ = players
    team = await team_service.create_team(db_session, "Pair", p2["id"], p1["id"])

    assert team["player_a_id"] == p1["id"]
    assert team["player_b_id"] == p2["id"]


@pytest.mark.asyncio
async def test_create_team_reversed_pair_conflicts(db_session, players):
    p1, p2, _ = players
    await team_service.create_team(db_session, "First", p1["id"], p2["id"])

    with pytest.raises(ConflictError) as exc:
        await team_service.create_team(db_session, "Second", p2["id"], p1["id"])
    assert exc.value.message == team_service.DUPLICATE_PAIR_MESSAGE


@pytest.mark.asyncio
async def test_create_team_after_delete_is_allowed(db_session, players):
    p1, p2, _ = players
    first = await team_service.create_team(db_session, "First", p1["id"], p2["id"])
    await team_service.delete_team(db_session, first["id"])

    again = await team_service.create_team(db_session, "Again", p1["id"], p2["id"])
    assert again["id"] != first["id"]


@pytest.mark.asyncio
async def test_create_team_rejects_bad_pairs(db_session, players):
    p1, _, _ = players
    with pytest.raises(ValidationError):
        await team_service.create_team(db_session, "Solo", p1["id"], p1["id"])
    with pytest.raises(ValidationError):
        await team_service.create_team(db_session, "Missing", p1["id"], None)
    with pytest.raises(ValidationError):
        await team_service.create_team(db_session, "Unknown", p1["id"], 9999)


@pytest.mark.asyncio
async def test_update_team_to_existing_pair_conflicts(db_session, players):
    p1, p2, p3 = players
    await team_service.create_team(db_session, "T12", p1["id"], p2["id"])
    t13 = await team_service.create_team(db_session, "T13", p1["id"], p3["id"])

    with pytest.raises(ConflictError):
        await team_service.update_team(db_session, t13["id"], {"player_b_id": p2["id"]})


@pytest.mark.asyncio
async def test_update_team_recanonicalizes(db_session, players):
    p1, p2, p3 = players
    team = await team_service.create_team(db_session, "T12", p1["id"], p2["id"])

    # Replace A with P3: pair (P3, P2) is stored as (P2, P3)
    updated = await team_service.update_team(db_session, team["id"], {"player_a_id": p3["id"]})
    assert (updated["player_a_id"], updated["player_b_id"]) == (p2["id"], p3["id"])


@pytest.mark.asyncio
async def test_list_teams_by_player(db_session, players):
    p1, p2, p3 = players
    await team_service.create_team(db_session, "T12", p1["id"], p2["id"])
    await team_service.create_team(db_session, "T23", p2["id"], p3["id"])

    items, total = await team_service.list_teams(db_session, player_id=p3["id"])
    assert total == 1
    assert items[0]["name"] == "T23"


# ============================================================================
# Team <-> season links
# ============================================================================

@pytest_asyncio.fixture
async def team_and_season(db_session, league, players):
    p1, p2, _ = players
    team = await team_service.create_team(db_session, "Linked", p1["id"], p2["id"])
    season = await season_service.create_season(db_session, league["id"], "Linked Season")
    return team, season


@pytest.mark.asyncio
async def test_link_is_idempotent(db_session, team_and_season):
    team, season = team_and_season
    first = await team_season_service.link_team_season(db_session, team["id"], season["id"])
    second = await team_season_service.link_team_season(db_session, team["id"], season["id"])

    assert first["is_active"] is True
    assert second["id"] == first["id"]


@pytest.mark.asyncio
async def test_relink_revives_same_row_and_resets_active(db_session, team_and_season):
    team, season = team_and_season
    link = await team_season_service.link_team_season(db_session, team["id"], season["id"])
    await team_season_service.set_team_season_active(db_session, team["id"], season["id"], False)
    await team_season_service.unlink_team_season(db_session, team["id"], season["id"])

    items, total = await team_season_service.list_team_seasons(db_session, team_id=team["id"])
    assert total == 0

    revived = await team_season_service.link_team_season(db_session, team["id"], season["id"])
    assert revived["id"] == link["id"]
    assert revived["is_active"] is True


@pytest.mark.asyncio
async def test_unlink_missing_link_is_noop(db_session, team_and_season):
    team, season = team_and_season
    await team_season_service.unlink_team_season(db_session, team["id"], season["id"])


@pytest.mark.asyncio
async def test_set_active_without_link_is_not_found(db_session, team_and_season):
    team, season = team_and_season
    with pytest.raises(NotFoundError):
        await team_season_service.set_team_season_active(db_session, team["id"], season["id"], True)


@pytest.mark.asyncio
async def test_link_unknown_team_is_not_found(db_session, team_and_season):
    _, season = team_and_season
    with pytest.raises(NotFoundError):
        await team_season_service.link_team_season(db_session, 9999, season["id"])


@pytest.mark.asyncio
async def test_link_requires_ids(db_session):
    with pytest.raises(ValidationError):
        await team_season_service.link_team_season(db_session, 0, 1)


@pytest.mark.asyncio
async def test_season_team_listings_respect_active_flag(db_session, league, players, team_and_season):
    team, season = team_and_season
    p1, _, p3 = players
    benched = await team_service.create_team(db_session, "Bench", p1["id"], p3["id"])
    await team_season_service.link_team_season(db_session, team["id"], season["id"])
    await team_season_service.link_team_season(db_session, benched["id"], season["id"], is_active=False)

    all_teams = await team_season_service.list_teams_for_season(db_session, season["id"])
    active_teams = await team_season_service.list_teams_for_season(
        db_session, season["id"], only_active=True
    )
    assert {t["id"] for t in all_teams} == {team["id"], benched["id"]}
    assert [t["id"] for t in active_teams] == [team["id"]]

    items, total = await team_service.list_teams(db_session, season_id=season["id"], only_active=True)
    assert total == 1
    assert items[0]["id"] == team["id"]

    seasons = await team_season_service.list_seasons_for_team(db_session, benched["id"])
    assert [s["id"] for s in seasons] == [season["id"]]
    assert await team_season_service.list_seasons_for_team(
        db_session, benched["id"], only_active=True
    ) == []
