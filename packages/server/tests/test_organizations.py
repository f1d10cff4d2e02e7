"""
Integration tests for Organization endpoints and membership.

Tests cover:
- Org CRUD (create, list, get, update, delete)
- Organization limits and slug rules
- Settings deep merge
- Member roles, removal and the last-owner rule
- Switching the active organization
"""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlmodel import select

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE, create_jwt, decode_jwt
from app.core.database import async_session_factory
from app.core.redis import is_jwt_revoked
from app.models.member import Member
from app.models.organization import Organization
from app.models.product import Product
from app.models.surface import Surface
from app.services.organizations import _deep_merge
from vinci_shared.schemas.organizations import OrgCreateRequest

from conftest import auth_headers, seed_member, seed_user


# ---------------------------------------------------------------------------
# Schema validation tests (no DB needed)
# ---------------------------------------------------------------------------

class TestOrgSchemas:
    @pytest.mark.parametrize("slug", ["acme", "acme-corp", "a1"])
    def test_valid_slugs(self, slug):
        assert OrgCreateRequest(name="Acme", slug=slug).slug == slug

    @pytest.mark.parametrize("slug", ["Acme", "-acme", "acme-", "a", "acme corp"])
    def test_invalid_slugs(self, slug):
        with pytest.raises(Exception):
            OrgCreateRequest(name="Acme", slug=slug)

    def test_deep_merge(self):
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        patch = {"a": {"b": 10}, "e": 5}
        result = _deep_merge(base, patch)
        assert result == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}

    def test_deep_merge_null_removes_key(self):
        assert _deep_merge({"a": 1, "b": 2}, {"a": None}) == {"b": 2}


# ---------------------------------------------------------------------------
# Listing and creation
# ---------------------------------------------------------------------------

class TestOrgListing:
    @pytest.mark.asyncio
    async def test_anonymous(self, client: AsyncClient):
        resp = await client.get("/api/v1/orgs")
        assert resp.status_code == 200
        assert resp.json() == []

        resp = await client.get("/api/v1/orgs/has-organizations")
        assert resp.json() == {"has_organizations": False}

    @pytest.mark.asyncio
    async def test_user_without_membership(self, client: AsyncClient):
        user = await seed_user()
        resp = await client.get("/api/v1/orgs/has-organizations", headers=auth_headers(user))
        assert resp.json() == {"has_organizations": False}

    @pytest.mark.asyncio
    async def test_member(self, client: AsyncClient, make_tenant):
        tenant = await make_tenant(role="member")
        resp = await client.get("/api/v1/orgs", headers=tenant.headers)
        assert resp.json() == [
            {"id": str(tenant.org.id), "name": tenant.org.name, "slug": tenant.org.slug}
        ]
        resp = await client.get("/api/v1/orgs/has-organizations", headers=tenant.headers)
        assert resp.json() == {"has_organizations": True}


class TestOrgCreate:
    @pytest.mark.asyncio
    async def test_create_makes_owner(self, client: AsyncClient):
        user = await seed_user()
        resp = await client.post(
            "/api/v1/orgs", json={"name": "Acme", "slug": "acme"}, headers=auth_headers(user)
        )
        assert resp.status_code == 201
        org = resp.json()
        assert org["slug"] == "acme"
        assert org["settings"] == {}

        resp = await client.get(f"/api/v1/orgs/{org['id']}/members", headers=auth_headers(user))
        assert [(m["user_id"], m["role"]) for m in resp.json()] == [(str(user.id), "owner")]

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, client: AsyncClient):
        resp = await client.post("/api/v1/orgs", json={"name": "Acme", "slug": "acme"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_slug_conflict(self, client: AsyncClient):
        user = await seed_user()
        await client.post("/api/v1/orgs", json={"name": "Acme", "slug": "acme"}, headers=auth_headers(user))
        resp = await client.post(
            "/api/v1/orgs", json={"name": "Other", "slug": "acme"}, headers=auth_headers(user)
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_organization_limit(self, client: AsyncClient):
        user = await seed_user()
        for i in range(5):
            resp = await client.post(
                "/api/v1/orgs", json={"name": f"Org {i}", "slug": f"org-{i}"}, headers=auth_headers(user)
            )
            assert resp.status_code == 201
        resp = await client.post(
            "/api/v1/orgs", json={"name": "One too many", "slug": "org-5"}, headers=auth_headers(user)
        )
        assert resp.status_code == 403
        assert "maximum number of organizations" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# Get / update / delete
# ---------------------------------------------------------------------------

class TestOrgManagement:
    @pytest.mark.asyncio
    async def test_get_requires_membership(self, client: AsyncClient, make_tenant):
        a = await make_tenant()
        b = await make_tenant()
        resp = await client.get(f"/api/v1/orgs/{a.org.id}", headers=a.headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == str(a.org.id)

        resp = await client.get(f"/api/v1/orgs/{a.org.id}", headers=b.headers)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_update_settings_deep_merge(self, client: AsyncClient, make_tenant):
        tenant = await make_tenant(role="admin")
        url = f"/api/v1/orgs/{tenant.org.id}"
        await client.patch(url, json={"settings": {"theme": {"color": "red", "mode": "dark"}}}, headers=tenant.headers)
        resp = await client.patch(
            url, json={"name": "Renamed", "settings": {"theme": {"color": "blue"}}}, headers=tenant.headers
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Renamed"
        assert data["settings"] == {"theme": {"color": "blue", "mode": "dark"}}

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, client: AsyncClient, make_tenant):
        tenant = await make_tenant(role="member")
        resp = await client.patch(
            f"/api/v1/orgs/{tenant.org.id}", json={"name": "Nope"}, headers=tenant.headers
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Insufficient organization role"

    @pytest.mark.asyncio
    async def test_admin_cannot_delete(self, client: AsyncClient, make_tenant):
        tenant = await make_tenant(role="admin")
        resp = await client.delete(f"/api/v1/orgs/{tenant.org.id}", headers=tenant.headers)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_cascades(self, client: AsyncClient, make_tenant):
        tenant = await make_tenant()
        base = f"/api/v1/orgs/{tenant.org.id}"
        resp = await client.post(
            f"{base}/products", json={"name": "P", "criticality": "low"}, headers=tenant.headers
        )
        product_id = resp.json()["id"]
        await client.post(
            f"{base}/products/{product_id}/surfaces",
            json={"name": "web", "type": "webapp"},
            headers=tenant.headers,
        )
        await client.post(
            f"{base}/invitations", json={"email": "new@example.com"}, headers=tenant.headers
        )

        resp = await client.delete(base, headers=tenant.headers)
        assert resp.status_code == 204

        async with async_session_factory() as s:
            assert await s.get(Organization, tenant.org.id) is None
            assert (await s.execute(select(Product))).scalars().all() == []
            assert (await s.execute(select(Surface))).scalars().all() == []
            assert (await s.execute(select(Member))).scalars().all() == []

        resp = await client.get("/api/v1/orgs", headers=tenant.headers)
        assert resp.json() == []


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class TestMembers:
    @pytest.mark.asyncio
    async def test_owner_promotes_member(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        user = await seed_user(name="Bob")
        await seed_member(owner.org, user)

        resp = await client.patch(
            f"/api/v1/orgs/{owner.org.id}/members/{user.id}",
            json={"role": "admin"},
            headers=owner.headers,
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        assert resp.json()["name"] == "Bob"

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_ownership(self, client: AsyncClient, make_tenant):
        admin = await make_tenant(role="admin")
        user = await seed_user()
        await seed_member(admin.org, user)

        resp = await client.patch(
            f"/api/v1/orgs/{admin.org.id}/members/{user.id}",
            json={"role": "owner"},
            headers=admin.headers,
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_last_owner_cannot_be_demoted(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        resp = await client.patch(
            f"/api/v1/orgs/{owner.org.id}/members/{owner.user.id}",
            json={"role": "member"},
            headers=owner.headers,
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_remove_member_revokes_access(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        user = await seed_user()
        await seed_member(owner.org, user)

        resp = await client.delete(
            f"/api/v1/orgs/{owner.org.id}/members/{user.id}", headers=owner.headers
        )
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/orgs/{owner.org.id}/products", headers=auth_headers(user))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_unknown_member(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        resp = await client.delete(
            f"/api/v1/orgs/{owner.org.id}/members/{uuid.uuid4()}", headers=owner.headers
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_cannot_remove_owner(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        admin = await seed_user()
        await seed_member(owner.org, admin, role="admin")

        resp = await client.delete(
            f"/api/v1/orgs/{owner.org.id}/members/{owner.user.id}", headers=auth_headers(admin)
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_leave(self, client: AsyncClient, make_tenant):
        owner = await make_tenant()
        user = await seed_user()
        await seed_member(owner.org, user)

        resp = await client.post(f"/api/v1/orgs/{owner.org.id}/leave", headers=auth_headers(user))
        assert resp.status_code == 204

        resp = await client.post(f"/api/v1/orgs/{owner.org.id}/leave", headers=owner.headers)
        assert resp.status_code == 409


class TestActivate:
    @pytest.mark.asyncio
    async def test_activate_with_bearer_keeps_token(
        self, client: AsyncClient, make_tenant, fake_redis
    ):
        tenant = await make_tenant(role="member")
        headers = tenant.headers
        resp = await client.post(f"/api/v1/orgs/{tenant.org.id}/activate", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["active_organization_id"] == str(tenant.org.id)
        assert decode_jwt(data["token"])["active_org"] == str(tenant.org.id)
        assert SESSION_COOKIE not in resp.cookies
        fake_redis.setex.assert_not_called()

        me = await client.get("/auth/me", headers=headers)
        assert me.json()["user"]["id"] == str(tenant.user.id)
        products = await client.get(f"/api/v1/orgs/{tenant.org.id}/products", headers=headers)
        assert products.status_code == 200

        reissued = {"Authorization": f"Bearer {data['token']}"}
        me = await client.get("/auth/me", headers=reissued)
        assert me.json()["user"]["id"] == str(tenant.user.id)

    @pytest.mark.asyncio
    async def test_activate_with_cookie_reissues_session(
        self, client: AsyncClient, make_tenant, fake_redis
    ):
        tenant = await make_tenant(role="member")
        old_token, old_jti = create_jwt(tenant.user.id)
        client.cookies.set(SESSION_COOKIE, old_token)
        client.cookies.set(CSRF_COOKIE, "csrf-value")

        resp = await client.post(
            f"/api/v1/orgs/{tenant.org.id}/activate", headers={"X-CSRF-Token": "csrf-value"}
        )
        assert resp.status_code == 200
        assert resp.json()["token"] is None

        payload = decode_jwt(resp.cookies[SESSION_COOKIE])
        assert payload["active_org"] == str(tenant.org.id)
        assert await is_jwt_revoked(old_jti)

    @pytest.mark.asyncio
    async def test_activate_requires_membership(self, client: AsyncClient, make_tenant):
        a = await make_tenant()
        b = await make_tenant()
        resp = await client.post(f"/api/v1/orgs/{b.org.id}/activate", headers=a.headers)
        assert resp.status_code == 403
