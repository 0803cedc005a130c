"""
Constants shared across services.
"""

# Pagination for list endpoints
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

# Player standings keyset pagination
DEFAULT_STANDINGS_LIMIT = 50
MAX_STANDINGS_LIMIT = 200

# Team stats fallback when a game has no location
UNKNOWN_LOCATION = "Unknown"

# Team standings win percentage precision
WIN_PCT_DECIMALS = 4
