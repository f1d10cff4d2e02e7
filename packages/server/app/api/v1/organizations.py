"""
Organization API endpoints.

GET    /api/v1/orgs                                  List orgs for the caller
GET    /api/v1/orgs/has-organizations                Whether the caller has any org
POST   /api/v1/orgs                                  Create a new org
GET    /api/v1/orgs/{organizationId}                 Get org details
PATCH  /api/v1/orgs/{organizationId}                 Update org name/logo/settings
DELETE /api/v1/orgs/{organizationId}                 Delete org and everything in it
POST   /api/v1/orgs/{organizationId}/activate        Make it the session's active org
GET    /api/v1/orgs/{organizationId}/members         List members
PATCH  /api/v1/orgs/{organizationId}/members/{userId}  Change a member's role
DELETE /api/v1/orgs/{organizationId}/members/{userId}  Remove a member
POST   /api/v1/orgs/{organizationId}/leave           Leave the org
GET    /api/v1/orgs/{organizationId}/invitations     List invitations
POST   /api/v1/orgs/{organizationId}/invitations     Invite an email address
DELETE /api/v1/orgs/{organizationId}/invitations/{invitationId}  Cancel an invitation
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    create_jwt,
    get_bearer_token,
    get_current_user,
    get_session_claims,
    set_session_cookies,
)
from app.core.database import get_session
from app.core.redis import revoke_jwt
from app.models.user import User
from app.services import invitations as invitation_service
from app.services import organizations as org_service
from app.services.memberships import get_user_organizations, has_user_organizations
from vinci_shared.schemas.organizations import (
    ActiveOrganizationResponse,
    InvitationCreateRequest,
    InvitationResponse,
    MemberResponse,
    MemberRoleUpdate,
    OrganizationInfo,
    OrgCreateRequest,
    OrgResponse,
    OrgUpdateRequest,
)

# ---------------------------------------------------------------------------
# Non-org-scoped routes (no organizationId in path)
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/orgs", response_model=List[OrganizationInfo], tags=["Organizations"])
async def list_orgs(
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the caller belongs to. Empty for anonymous callers."""
    result = await get_user_organizations(user, session)
    return result.organizations


@router_global.get("/orgs/has-organizations", tags=["Organizations"])
async def has_organizations(
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return {"has_organizations": await has_user_organizations(user, session)}


@router_global.post("/orgs", response_model=OrgResponse, status_code=201, tags=["Organizations"])
async def create_org(
    body: OrgCreateRequest,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its owner."""
    return await org_service.create_org(body, user, session)


# ---------------------------------------------------------------------------
# Org-scoped routes (organizationId in path)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=OrgResponse)
async def get_org(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.get_org(user, organizationId, session)


@router_scoped.patch("", response_model=OrgResponse)
async def update_org(
    organizationId: uuid.UUID,
    body: OrgUpdateRequest,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Update org name, logo or settings (owner/admin). Settings are deep-merged."""
    return await org_service.update_org(user, organizationId, body, session)


@router_scoped.delete("", status_code=204)
async def delete_org(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete the org with all of its products, members and invitations (owner)."""
    await org_service.delete_org(user, organizationId, session)


@router_scoped.post("/activate", response_model=ActiveOrganizationResponse)
async def activate_org(
    organizationId: uuid.UUID,
    request: Request,
    response: Response,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Reissue the session token with this org as the active one.

    Cookie sessions get the new token as cookies and the old one is revoked.
    Bearer clients keep their current token and get the new one in the body.
    """
    org = await org_service.set_active_organization(user, organizationId, session)
    token, _jti = create_jwt(user.id, active_org=org.id)

    if get_bearer_token(request):
        return ActiveOrganizationResponse(
            active_organization_id=org.id, message="Active organization updated", token=token
        )

    claims = await get_session_claims(request)
    if claims and claims.get("jti"):
        await revoke_jwt(claims["jti"])
    set_session_cookies(response, token)

    return ActiveOrganizationResponse(
        active_organization_id=org.id, message="Active organization updated"
    )


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router_scoped.get("/members", response_model=List[MemberResponse])
async def list_members(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.list_members(user, organizationId, session)


@router_scoped.patch("/members/{userId}", response_model=MemberResponse)
async def update_member_role(
    organizationId: uuid.UUID,
    userId: uuid.UUID,
    body: MemberRoleUpdate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.update_member_role(user, organizationId, userId, body.role, session)


@router_scoped.delete("/members/{userId}", status_code=204)
async def remove_member(
    organizationId: uuid.UUID,
    userId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await org_service.remove_member(user, organizationId, userId, session)


@router_scoped.post("/leave", status_code=204)
async def leave_org(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await org_service.leave_org(user, organizationId, session)


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------


@router_scoped.get("/invitations", response_model=List[InvitationResponse])
async def list_invitations(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await invitation_service.list_invitations(user, organizationId, session)


@router_scoped.post("/invitations", response_model=InvitationResponse, status_code=201)
async def create_invitation(
    organizationId: uuid.UUID,
    body: InvitationCreateRequest,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Invite an email address (owner/admin). Replaces a pending invite for it."""
    return await invitation_service.create_invitation(user, organizationId, body, session)


@router_scoped.delete("/invitations/{invitationId}", response_model=InvitationResponse)
async def cancel_invitation(
    organizationId: uuid.UUID,
    invitationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await invitation_service.cancel_invitation(
        user, organizationId, invitationId, session
    )
