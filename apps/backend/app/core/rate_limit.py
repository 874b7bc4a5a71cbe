"""
rate_limit.py — Global rate limiter instance.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library).
Requests are keyed by client IP address.

Usage in routes:
    from fastapi import Request
    from app.core.rate_limit import limiter

    @router.get("/map")
    @limiter.limit("60/minute")
    async def my_endpoint(request: Request, ...):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Key requests by client IP. Authenticated dashboards could key on the
# user id instead (key_func=lambda req: req.query_params.get("userId")).
limiter = Limiter(key_func=get_remote_address)

# Applied to GET /api/overview/map. Each call may fan out to two paid
# news APIs when internal data is sparse.
OVERVIEW_MAP_LIMIT = "60/minute"
