from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from scheduling_service.config.settings import get_settings


def client_key(request: Request) -> str:
    """Rate limit key: first X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def configured_rate_limit() -> str:
    # Read per request so a changed setting applies without re-decorating routes
    return get_settings().rate_limit


limiter = Limiter(
    key_func=client_key,
    default_limits=[get_settings().rate_limit],
    enabled=get_settings().rate_limit_enabled,
    storage_uri="memory://",
)
