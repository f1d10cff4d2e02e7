"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{organizationId}.
"""

from fastapi import APIRouter
from . import features, invitations, products, surfaces
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

# Organization routes (non-org-scoped: list, has-organizations, create)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: get, update, delete, members, invitations)
router.include_router(
    orgs_scoped_router, prefix="/orgs/{organizationId}", tags=["Organizations"]
)

# Recipient-side invitation routes
router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])

# Include resource routers
router.include_router(
    products.router, prefix="/orgs/{organizationId}/products", tags=["Products"]
)
router.include_router(
    surfaces.router, prefix="/orgs/{organizationId}/surfaces", tags=["Surfaces"]
)
router.include_router(
    features.router, prefix="/orgs/{organizationId}/features", tags=["Features"]
)


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/{organizationId}/members",
            "/orgs/{organizationId}/invitations",
            "/orgs/{organizationId}/products",
            "/orgs/{organizationId}/surfaces",
            "/orgs/{organizationId}/features",
            "/invitations/{invitationId}",
        ],
    }
