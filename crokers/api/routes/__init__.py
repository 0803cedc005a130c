"""
API routes - combined router from all domain modules.

Shared infrastructure (the rate limiter) lives here; every sub-router
imports what it needs from this package.
"""

import os

from fastapi import APIRouter
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

AUTH_RATE_LIMIT = "10/minute"

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from crokers.api.routes.health import router as health_router  # noqa: E402
from crokers.api.routes.auth import router as auth_router  # noqa: E402
from crokers.api.routes.users import router as users_router  # noqa: E402
from crokers.api.routes.leagues import router as leagues_router  # noqa: E402
from crokers.api.routes.seasons import router as seasons_router  # noqa: E402
from crokers.api.routes.players import router as players_router  # noqa: E402
from crokers.api.routes.teams import router as teams_router  # noqa: E402
from crokers.api.routes.team_seasons import router as team_seasons_router  # noqa: E402
from crokers.api.routes.games import router as games_router  # noqa: E402
from crokers.api.routes.game_sides import router as game_sides_router  # noqa: E402

router = APIRouter()
router.include_router(health_router)
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(leagues_router)
router.include_router(seasons_router)
router.include_router(players_router)
router.include_router(teams_router)
router.include_router(team_seasons_router)
router.include_router(games_router)
router.include_router(game_sides_router)
