"""
Script to create a local user with a password, optionally owning a new organization.
"""

import argparse
import asyncio

import structlog
from sqlmodel import select

from app.core.auth import hash_password
from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.models.member import Member
from app.models.organization import Organization
from app.models.user import User

log = structlog.get_logger()


async def create_user(
    name: str, email: str, password: str, org_slug: str | None = None
) -> None:
    email = email.lower()
    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = User(name=name, email=email, password_hash=hash_password(password))
            session.add(user)
            await session.flush()
            log.info("user.created", user_id=str(user.id), email=email)
        else:
            log.info("user.exists", user_id=str(user.id), email=email)

        if org_slug is None:
            return

        result = await session.execute(
            select(Organization).where(Organization.slug == org_slug)
        )
        org = result.scalar_one_or_none()
        if not org:
            org = Organization(name=org_slug, slug=org_slug, settings={})
            session.add(org)
            await session.flush()
            log.info("org.created", org_id=str(org.id), slug=org_slug)

        membership = await session.get(Member, (org.id, user.id))
        if not membership:
            session.add(Member(organization_id=org.id, user_id=user.id, role="owner"))
            log.info("org.member_added", org_id=str(org.id), user_id=str(user.id), role="owner")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local user.")
    parser.add_argument("--name", required=True, help="Display name for the user")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--org", dest="org_slug", help="Slug of an org to own (created if missing)")

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "console")
    asyncio.run(create_user(args.name, args.email, args.password, args.org_slug))
