"""Process-scoped handles built at startup and closed at shutdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
import redis.asyncio as redis
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from contact_api.config import Settings
from contact_api.database import create_engine, create_session_factory, create_tables
from contact_api.notifications.email import EmailNotifier
from contact_api.notifications.resend_client import ResendClient
from contact_api.ratelimit.limiter import (
    API_LIMIT_MESSAGE,
    CONTACT_LIMIT_MESSAGE,
    RateLimiter,
    build_limiter,
)
from contact_api.redis_client import create_redis_client

logger = structlog.get_logger()


@dataclass
class Resources:
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    http_client: httpx.AsyncClient
    notifier: EmailNotifier
    contact_limiter: RateLimiter
    api_limiter: RateLimiter
    redis: Optional[redis.Redis] = None

    async def close(self) -> None:
        await self.contact_limiter.close()
        await self.api_limiter.close()
        await self.http_client.aclose()
        if self.redis is not None:
            await self.redis.aclose()
        await self.engine.dispose()
        logger.info("resources_closed")


async def build_resources(settings: Settings) -> Resources:
    """Open the database, HTTP and Redis handles the app needs."""
    engine = create_engine(settings.database_url)
    if settings.database_auto_create:
        await create_tables(engine)

    http_client = httpx.AsyncClient(timeout=settings.email_timeout_seconds)
    notifier = EmailNotifier(
        ResendClient(http_client, settings.resend_api_key, settings.resend_api_url),
        from_address=settings.resend_from_email,
        to_address=settings.email_to,
    )
    notifier.verify_config()

    redis_client = create_redis_client(settings.redis_url)
    contact_limiter = build_limiter(
        "contact",
        settings.rate_limit_window_minutes,
        settings.rate_limit_max_requests,
        CONTACT_LIMIT_MESSAGE,
        redis_client,
    )
    api_limiter = build_limiter(
        "api",
        settings.api_rate_limit_window_minutes,
        settings.api_rate_limit_max_requests,
        API_LIMIT_MESSAGE,
        redis_client,
    )

    return Resources(
        engine=engine,
        session_factory=create_session_factory(engine),
        http_client=http_client,
        notifier=notifier,
        contact_limiter=contact_limiter,
        api_limiter=api_limiter,
        redis=redis_client,
    )
