"""
api/limiter.py -- Shared slowapi rate limiter for the GymDesk API.

api/main.py mounts it (app.state.limiter + SlowAPIMiddleware) and
api/routes/v1/users.py applies login_limit to POST /api/users/login. One
instance means one counter store for every route.

Counters are keyed by client IP and held in the storage named by
RATE_LIMIT_STORAGE_URI (in-process memory unless configured otherwise).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings


def login_limit() -> str:
    """Current login limit, e.g. "10/minute". Read per request so tests can override it."""
    return get_settings().login_rate_limit


limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)
