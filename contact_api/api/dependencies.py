"""FastAPI dependencies shared by the API routers."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

from contact_api.errors import RateLimitError
from contact_api.notifications.email import Notifier
from contact_api.ratelimit.limiter import RateLimiter
from contact_api.schemas.submission import ClientInfo


def client_address(request: Request) -> Optional[str]:
    """Best-effort source address of the request.

    When ``trust_proxy`` is set, uses the last ``X-Forwarded-For`` hop, which
    is the one appended by the proxy. Earlier hops are client-supplied.
    """
    if request.app.state.settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
            if hops:
                return hops[-1]
    return request.client.host if request.client else None


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        address=client_address(request),
        agent=request.headers.get("user-agent"),
    )


def get_notifier(request: Request) -> Notifier:
    return request.app.state.resources.notifier


def rate_limit(
    select: Callable[[Request], RateLimiter],
) -> Callable[[Request, Response], Awaitable[None]]:
    """Build a dependency that charges one hit to the selected limiter."""

    async def dependency(request: Request, response: Response) -> None:
        limiter = select(request)
        decision = await limiter.hit(client_address(request) or "unknown")
        if not decision.allowed:
            raise RateLimitError(limiter.message, decision.limit, decision.reset_after)
        response.headers.update(decision.headers())

    return dependency


api_rate_limit = rate_limit(lambda request: request.app.state.resources.api_limiter)
contact_rate_limit = rate_limit(lambda request: request.app.state.resources.contact_limiter)
