"""
Login Throttling

slowapi limiter shared by the whole app. Every endpoint gets
settings.rate_limit_default; register and login are additionally held to
settings.rate_limit_auth so passwords cannot be guessed at speed.

Client identity:
================
Requests are keyed by the address of the connecting peer. X-Forwarded-For
is only read when that peer is one of settings.trusted_proxies; the header
is then walked from the right and the first hop that is not one of our own
proxies is the client. Anything a client writes into the header itself is
never used as the key.

Counters live in settings.rate_limit_storage_uri (memory:// for a single
process, redis:// when several workers must share them).
"""

import logging
from collections.abc import Collection

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from tometracker.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def resolve_client_ip(request: Request, trusted_proxies: Collection[str]) -> str:
    """
    Address to rate limit ``request`` by.

    Args:
        request: Incoming request
        trusted_proxies: Peers whose X-Forwarded-For header is believed

    Returns:
        The connecting peer, or the client a trusted proxy forwarded for
    """
    peer = get_remote_address(request)
    if peer not in trusted_proxies:
        return peer

    forwarded_for = request.headers.get("X-Forwarded-For", "")
    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return hops[0] if hops else peer


def get_client_ip(request: Request) -> str:
    return resolve_client_ip(request, settings.trusted_proxies_list)


def create_limiter() -> Limiter:
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter ready (enabled={settings.rate_limit_enabled}, "
        f"default={settings.rate_limit_default}, auth={settings.rate_limit_auth}, "
        f"trusted proxies={len(settings.trusted_proxies_list)})"
    )
    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same {"detail": ...} shape as every other error."""
    limit = str(exc.detail)
    logger.warning(f"Rate limit {limit} hit by {get_client_ip(request)} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests ({limit}). Try again later."},
        headers={"Retry-After": "60", "X-RateLimit-Limit": limit},
    )
