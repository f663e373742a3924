from uuid import uuid4

import pytest
from httpx import AsyncClient
from jose import jwt

from app.auth.security import create_access_token


@pytest.mark.asyncio
async def test_missing_token_is_unauthenticated(client: AsyncClient) -> None:
    response = await client.get("/api/v1/classes")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_garbage_token_is_unauthenticated(client: AsyncClient) -> None:
    response = await client.get("/api/v1/classes", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_key_is_rejected(client: AsyncClient, seed) -> None:
    admin_id = await seed.admin()
    forged = jwt.encode({"sub": str(admin_id)}, "someone-elses-secret", algorithm="HS256")
    response = await client.get("/api/v1/classes", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_rejected(client: AsyncClient, seed) -> None:
    admin_id = await seed.admin()
    token = create_access_token(subject={"sub": str(admin_id)}, expires_minutes=-5)
    response = await client.get("/api/v1/classes", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_non_uuid_subject_is_rejected(client: AsyncClient) -> None:
    token = create_access_token(subject={"sub": "admin"})
    response = await client.get("/api/v1/classes", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_subject_without_role_is_forbidden(client: AsyncClient, headers_for) -> None:
    response = await client.get("/api/v1/classes", headers=headers_for(uuid4()))
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_teacher_cannot_use_admin_endpoints(client: AsyncClient, seed, headers_for) -> None:
    teacher_id = await seed.teacher()
    response = await client.get("/api/v1/classes", headers=headers_for(teacher_id))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_is_resolved_from_admin_table(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/classes", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_health_needs_no_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
