"""
ARQ background task: expire pending invitations past their expiry time.

Scheduled to run periodically (every hour, on the hour).
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.database import get_session_context
from app.services.invitations import expire_stale_invitations

log = structlog.get_logger()


async def expire_invitations(ctx: dict) -> int:
    """Returns the number of invitations marked expired."""
    async with get_session_context() as session:
        count = await expire_stale_invitations(session)

    if count:
        log.info("invitation_expiry.batch_expired", count=count)
    return count


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [expire_invitations]
    cron_jobs = [cron(expire_invitations, minute=0)]
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
